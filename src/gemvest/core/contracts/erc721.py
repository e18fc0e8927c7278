"""
BERA Collection Model.

In-process model of the NFT collection whose ids earn vesting rewards. Ids
are minted sequentially from zero up to a fixed collection size. The
custody contract moves them in and out with ``transfer_from`` after the
staker has granted it operator approval.

``snapshot``/``restore`` let a reverted stake or unstake put every NFT back
where it was.
"""

from __future__ import annotations

import copy
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from ..constants import ZERO_ADDRESS
from ..exceptions import TokenError

logger = logging.getLogger(__name__)


@dataclass
class NFTEvent:
    """Transfer, Approval or ApprovalForAll record."""

    event_type: str
    from_address: str
    to_address: str
    token_id: int
    approved: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC721Token:
    """
    Fixed-size NFT collection.

    ``max_supply`` of 0 means uncapped. With a cap of N the collection spans
    ids ``0..N-1``.
    """

    name: str
    symbol: str
    base_uri: str = ""
    address: str = ""
    owner: str = ""

    owners: dict[int, str] = field(default_factory=dict)
    balances: dict[str, int] = field(default_factory=dict)
    token_approvals: dict[int, str] = field(default_factory=dict)
    operator_approvals: dict[str, dict[str, bool]] = field(default_factory=dict)

    next_token_id: int = 0
    max_supply: int = 0

    events: list[NFTEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.address:
            digest = hashlib.sha3_256(f"{self.symbol}:{self.name}:{time.time()}".encode()).digest()
            self.address = f"0x{digest[-20:].hex()}"
        self.address = self.address.lower()
        self.owner = self.owner.lower()

    # ==================== View Functions ====================

    def balance_of(self, owner: str) -> int:
        return self.balances.get(owner.lower(), 0)

    def owner_of(self, token_id: int) -> str:
        """
        Current holder of ``token_id`` (the custody address while staked).

        Raises:
            TokenError: If the id has not been minted
        """
        try:
            return self.owners[token_id]
        except KeyError:
            raise TokenError(
                f"{self.symbol}: token {token_id} not minted",
                details={"token_id": token_id},
            ) from None

    def get_approved(self, token_id: int) -> str:
        self.owner_of(token_id)
        return self.token_approvals.get(token_id, ZERO_ADDRESS)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.operator_approvals.get(owner.lower(), {}).get(operator.lower(), False)

    def token_uri(self, token_id: int) -> str:
        self.owner_of(token_id)
        return f"{self.base_uri}{token_id}" if self.base_uri else ""

    def total_supply(self) -> int:
        return len(self.owners)

    # ==================== State-Changing Functions ====================

    def approve(self, caller: str, to: str, token_id: int) -> bool:
        """Let ``to`` move one id; caller must hold it or be an operator."""
        holder = self.owner_of(token_id)
        caller_key, to_key = caller.lower(), to.lower()

        if to_key == holder:
            raise TokenError(f"{self.symbol}: token {token_id} is already held by {to_key[:10]}")
        if caller_key != holder and not self.is_approved_for_all(holder, caller_key):
            raise TokenError(f"{self.symbol}: {caller_key[:10]} may not approve token {token_id}")

        self.token_approvals[token_id] = to_key
        self.events.append(NFTEvent("Approval", holder, to_key, token_id))
        return True

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> bool:
        """Grant or revoke ``operator`` over every id ``caller`` holds."""
        caller_key, operator_key = caller.lower(), operator.lower()
        if operator_key == caller_key:
            raise TokenError(f"{self.symbol}: cannot make {caller_key[:10]} its own operator")

        self.operator_approvals.setdefault(caller_key, {})[operator_key] = approved
        self.events.append(
            NFTEvent("ApprovalForAll", caller_key, operator_key, 0, approved=approved)
        )
        return True

    def transfer_from(self, caller: str, from_addr: str, to_addr: str, token_id: int) -> bool:
        """
        Move ``token_id`` from ``from_addr`` to ``to_addr``.

        ``caller`` must be the holder, the id's approved address or an
        operator of the holder. The per-id approval is cleared.

        Raises:
            TokenError: On a wrong holder, missing approval or zero recipient
        """
        from_key, to_key, caller_key = from_addr.lower(), to_addr.lower(), caller.lower()

        holder = self.owner_of(token_id)
        if holder != from_key:
            raise TokenError(
                f"{self.symbol}: token {token_id} is held by {holder[:10]}, not {from_key[:10]}",
                details={"token_id": token_id, "holder": holder},
            )
        if not self._may_move(caller_key, holder, token_id):
            raise TokenError(
                f"{self.symbol}: {caller_key[:10]} may not move token {token_id}",
                details={"token_id": token_id, "caller": caller_key},
            )
        if to_key == ZERO_ADDRESS:
            raise TokenError(f"{self.symbol}: cannot send token {token_id} to the zero address")

        self.token_approvals.pop(token_id, None)
        self.balances[from_key] -= 1
        self.balances[to_key] = self.balances.get(to_key, 0) + 1
        self.owners[token_id] = to_key
        self.events.append(NFTEvent("Transfer", from_key, to_key, token_id))

        logger.debug(
            "Collection transfer",
            extra={
                "event": "erc721.transfer",
                "collection": self.symbol,
                "token_id": token_id,
                "from": from_key[:10],
                "to": to_key[:10],
            },
        )
        return True

    def mint(self, minter: str, to: str, quantity: int = 1) -> list[int]:
        """
        Mint the next ``quantity`` ids to ``to``; only the owner may mint.

        Returns:
            The minted ids, ascending
        """
        if minter.lower() != self.owner:
            raise TokenError(f"{self.symbol}: only the owner can mint")
        to_key = to.lower()
        if to_key == ZERO_ADDRESS:
            raise TokenError(f"{self.symbol}: cannot mint to the zero address")
        if quantity <= 0:
            raise TokenError(f"{self.symbol}: mint quantity must be positive, got {quantity}")
        if self.max_supply and self.next_token_id + quantity > self.max_supply:
            raise TokenError(
                f"{self.symbol}: minting {quantity} would pass the {self.max_supply} cap",
                details={"next_token_id": self.next_token_id, "max_supply": self.max_supply},
            )

        minted = list(range(self.next_token_id, self.next_token_id + quantity))
        for token_id in minted:
            self.owners[token_id] = to_key
            self.events.append(NFTEvent("Transfer", ZERO_ADDRESS, to_key, token_id))
        self.balances[to_key] = self.balances.get(to_key, 0) + quantity
        self.next_token_id += quantity

        logger.info(
            "Collection minted",
            extra={
                "event": "erc721.mint",
                "collection": self.symbol,
                "first_token_id": minted[0],
                "quantity": quantity,
                "to": to_key[:10],
            },
        )
        return minted

    # ==================== Snapshots ====================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "owners": dict(self.owners),
            "balances": dict(self.balances),
            "token_approvals": dict(self.token_approvals),
            "operator_approvals": copy.deepcopy(self.operator_approvals),
            "next_token_id": self.next_token_id,
            "events_len": len(self.events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.owners = dict(snapshot["owners"])
        self.balances = dict(snapshot["balances"])
        self.token_approvals = dict(snapshot["token_approvals"])
        self.operator_approvals = copy.deepcopy(snapshot["operator_approvals"])
        self.next_token_id = snapshot["next_token_id"]
        del self.events[snapshot["events_len"]:]

    def _may_move(self, caller: str, holder: str, token_id: int) -> bool:
        return (
            caller == holder
            or self.token_approvals.get(token_id) == caller
            or self.is_approved_for_all(holder, caller)
        )
