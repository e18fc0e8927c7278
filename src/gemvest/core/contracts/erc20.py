"""
BERAMO Reward Token.

In-process model of the fungible token the vesting pool is held in. The
deployment mints the whole pool to the administrator, who approves the
ledger and lets ``initialize_vesting_pool`` pull it; after that the ledger
only ever calls ``transfer`` to pay stakers.

``snapshot``/``restore`` exist so a reverted ledger operation takes the
token's balances back with it.
"""

from __future__ import annotations

import copy
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol, runtime_checkable

from ..constants import ZERO_ADDRESS
from ..exceptions import TokenError

logger = logging.getLogger(__name__)

UINT256_MAX = 2**256 - 1


@runtime_checkable
class RewardToken(Protocol):
    """Token surface the vesting ledger depends on.

    ``transfer`` and ``transfer_from`` either complete or raise; ``snapshot``
    and ``restore`` let the enclosing operation roll balances back.
    """

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool: ...

    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...


@dataclass
class TokenEvent:
    """Transfer or Approval record; mints are transfers from the zero address."""

    event_type: str
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    Fungible token with owner-only minting and allowances.

    Every address argument is lower-cased before use, so callers may pass
    checksummed addresses.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""
    owner: str = ""

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)

    UINT256_MAX: int = UINT256_MAX

    def __post_init__(self) -> None:
        if not self.address:
            digest = hashlib.sha3_256(f"{self.symbol}:{self.name}:{time.time()}".encode()).digest()
            self.address = f"0x{digest[-20:].hex()}"
        self.address = self.address.lower()
        self.owner = self.owner.lower()

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(account.lower(), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Amount ``spender`` may still pull from ``owner``."""
        return self.allowances.get(owner.lower(), {}).get(spender.lower(), 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from ``sender`` to ``recipient``.

        Raises:
            TokenError: On a zero recipient, a bad amount or a short balance
        """
        self._move(sender.lower(), recipient.lower(), amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set (not add to) the allowance of ``spender`` over ``owner``'s tokens."""
        owner_key, spender_key = owner.lower(), spender.lower()
        self._check_recipient(spender_key, "spender")
        self._check_amount(amount)

        self.allowances.setdefault(owner_key, {})[spender_key] = amount
        self.events.append(TokenEvent("Approval", owner_key, spender_key, amount))
        return True

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Move ``amount`` out of ``from_addr`` on ``spender``'s allowance.

        An allowance of ``UINT256_MAX`` is treated as unlimited and left as is.

        Raises:
            TokenError: If the allowance or the balance is too small
        """
        spender_key, from_key = spender.lower(), from_addr.lower()
        self._check_amount(amount)

        allowed = self.allowance(from_key, spender_key)
        if allowed < amount:
            raise TokenError(
                f"{self.symbol}: allowance of {spender_key[:10]} is {allowed}, needs {amount}",
                details={"owner": from_key, "spender": spender_key},
            )

        self._move(from_key, to_addr.lower(), amount)
        if allowed != self.UINT256_MAX:
            self.allowances[from_key][spender_key] = allowed - amount
        return True

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Create ``amount`` new tokens for ``to``; only the owner may mint."""
        if minter.lower() != self.owner:
            raise TokenError(f"{self.symbol}: only the owner can mint")
        to_key = to.lower()
        self._check_recipient(to_key, "recipient")
        self._check_amount(amount)

        self.total_supply += amount
        self.balances[to_key] = self.balances.get(to_key, 0) + amount
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, to_key, amount))

        logger.info(
            "Reward token minted",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_key[:10],
                "amount": amount,
                "total_supply": self.total_supply,
            },
        )
        return True

    # ==================== Snapshots ====================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_supply": self.total_supply,
            "balances": dict(self.balances),
            "allowances": copy.deepcopy(self.allowances),
            "events_len": len(self.events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Roll back to a :meth:`snapshot`; later events are dropped."""
        self.total_supply = snapshot["total_supply"]
        self.balances = dict(snapshot["balances"])
        self.allowances = copy.deepcopy(snapshot["allowances"])
        del self.events[snapshot["events_len"]:]

    # ==================== Internals ====================

    def _move(self, from_key: str, to_key: str, amount: int) -> None:
        self._check_recipient(to_key, "recipient")
        self._check_amount(amount)

        available = self.balances.get(from_key, 0)
        if available < amount:
            raise TokenError(
                f"{self.symbol}: balance of {from_key[:10]} is {available}, needs {amount}",
                details={"account": from_key, "balance": available, "amount": amount},
            )

        self.balances[from_key] = available - amount
        self.balances[to_key] = self.balances.get(to_key, 0) + amount
        self.events.append(TokenEvent("Transfer", from_key, to_key, amount))

        logger.debug(
            "Reward token transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": from_key[:10],
                "to": to_key[:10],
                "amount": amount,
            },
        )

    def _check_recipient(self, address: str, role: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise TokenError(f"{self.symbol}: {role} is the zero address")

    def _check_amount(self, amount: int) -> None:
        if not 0 <= amount <= self.UINT256_MAX:
            raise TokenError(f"{self.symbol}: amount out of range: {amount}")

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Amounts are stored as decimal strings."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "address": self.address,
            "owner": self.owner,
            "total_supply": str(self.total_supply),
            "balances": {account: str(value) for account, value in self.balances.items()},
            "allowances": {
                owner: {spender: str(value) for spender, value in spenders.items()}
                for owner, spenders in self.allowances.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ERC20Token":
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=int(data.get("total_supply", 0)),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
        )
        token.balances = {account: int(value) for account, value in data.get("balances", {}).items()}
        token.allowances = {
            owner: {spender: int(value) for spender, value in spenders.items()}
            for owner, spenders in data.get("allowances", {}).items()
        }
        return token
