"""
Gemhunters Staking Custody.

Holds staked collection NFTs on behalf of their owners and notifies
registered listeners (such as the vesting ledger) of every stake and
unstake.

Features:
- Batch stake of approved token ids into custody
- Batch unstake by position in the owner's staked list (swap-and-pop)
- Ordered listener registry managed by ADMIN
- Per-listener ``allow_fail``: a failing tolerant listener is skipped,
  any other failure reverts the whole stake/unstake
"""

from __future__ import annotations

import copy
import hashlib
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, runtime_checkable

from ..contracts.erc721 import ERC721Token
from ..exceptions import NotActiveError, VestingError
from .access_control import Role, RoleBasedAccessControl, requires_role
from .vesting_state import normalize_address

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenStakingListener(Protocol):
    """Callbacks the custody contract issues for every stake transition."""

    def on_token_staked(self, caller: str, staker: str, token_id: int) -> None: ...

    def on_token_unstaked(self, caller: str, staker: str, token_id: int) -> None: ...


@dataclass
class StakingListener:
    """Registered listener and whether its failures are tolerated."""

    target: TokenStakingListener
    allow_fail: bool = False


class GemhuntersStaking:
    """
    NFT custody contract with stake/unstake listeners.

    Args:
        collection: The NFT collection being staked
        admin: Address allowed to manage listeners (seeded as ADMIN only on
            a freshly created role table)
        access_control: Role table; a fresh one is created when omitted
        address: Custody address; derived when omitted
    """

    def __init__(
        self,
        collection: ERC721Token,
        admin: str,
        access_control: Optional[RoleBasedAccessControl] = None,
        address: str = "",
    ) -> None:
        self.collection = collection
        self.access_control = access_control or RoleBasedAccessControl(admin_address=admin)

        if not address:
            addr_hash = hashlib.sha3_256(
                f"GemhuntersStaking{collection.address}{time.time()}".encode()
            ).digest()
            address = f"0x{addr_hash[-20:].hex()}"
        self.address = normalize_address(address)

        self.listeners: List[StakingListener] = []
        self._staked: Dict[str, List[int]] = {}

    # ==================== View Functions ====================

    def staked_bera_count(self, owner: str) -> int:
        return len(self._staked.get(owner.lower(), []))

    def staked_tokens(self, owner: str) -> List[int]:
        """Token ids staked by ``owner`` in list order."""
        return list(self._staked.get(owner.lower(), []))

    # ==================== Listener Registry ====================

    @requires_role(Role.ADMIN.value)
    def push_listener(self, caller: str, listener: StakingListener) -> int:
        """
        Append a listener; returns its index.

        Raises:
            UnauthorizedError: If caller lacks the ADMIN role
            VestingError: If the target does not implement the callbacks
        """
        if not isinstance(listener.target, TokenStakingListener):
            raise VestingError(
                f"Listener {type(listener.target).__name__} lacks staking callbacks"
            )
        self.listeners.append(listener)

        logger.info(
            "Staking listener added",
            extra={
                "event": "gemhunters.listener_added",
                "index": len(self.listeners) - 1,
                "listener": type(listener.target).__name__,
                "allow_fail": listener.allow_fail,
            },
        )
        return len(self.listeners) - 1

    @requires_role(Role.ADMIN.value)
    def remove_listener(self, caller: str, index: int) -> StakingListener:
        if not 0 <= index < len(self.listeners):
            raise NotActiveError(f"No listener at index {index}")
        listener = self.listeners.pop(index)

        logger.info(
            "Staking listener removed",
            extra={
                "event": "gemhunters.listener_removed",
                "index": index,
                "listener": type(listener.target).__name__,
            },
        )
        return listener

    # ==================== Stake / Unstake ====================

    def stake(self, caller: str, token_ids: Iterable[int]) -> None:
        """
        Move ``token_ids`` from ``caller`` into custody.

        The caller must own each id and have approved the custody address.

        Raises:
            TokenError: If an NFT transfer fails
            ContractError: If a listener without ``allow_fail`` fails
        """
        owner = caller.lower()
        token_ids = list(token_ids)
        with self._atomic():
            staked = self._staked.setdefault(owner, [])
            for token_id in token_ids:
                self.collection.transfer_from(self.address, owner, self.address, token_id)
                staked.append(token_id)
                self._notify("on_token_staked", owner, token_id)

            logger.info(
                "Tokens staked",
                extra={
                    "event": "gemhunters.staked",
                    "owner": owner[:10],
                    "count": len(token_ids),
                    "total_staked": len(staked),
                },
            )

    def unstake_by_indices(self, caller: str, indices: Iterable[int]) -> List[int]:
        """
        Return staked NFTs to ``caller`` by position in their staked list.

        Indices are applied in the order given, each against the list as
        left by the previous removal: the last entry is moved into the freed
        slot. Pass indices in descending order to address the original
        positions.

        Returns:
            Token ids returned, in processing order

        Raises:
            NotActiveError: If an index is out of range
        """
        owner = caller.lower()
        returned: List[int] = []
        with self._atomic():
            staked = self._staked.get(owner, [])
            for index in indices:
                if not 0 <= index < len(staked):
                    raise NotActiveError(
                        f"No staked token at index {index}",
                        details={"owner": owner, "index": index, "count": len(staked)},
                    )
                token_id = staked[index]
                staked[index] = staked[-1]
                staked.pop()

                self.collection.transfer_from(self.address, self.address, owner, token_id)
                self._notify("on_token_unstaked", owner, token_id)
                returned.append(token_id)

            logger.info(
                "Tokens unstaked",
                extra={
                    "event": "gemhunters.unstaked",
                    "owner": owner[:10],
                    "count": len(returned),
                    "total_staked": len(staked),
                },
            )
        return returned

    # ==================== Internals ====================

    def _notify(self, callback: str, staker: str, token_id: int) -> None:
        for index, listener in enumerate(self.listeners):
            target = listener.target
            if not listener.allow_fail:
                getattr(target, callback)(self.address, staker, token_id)
                continue

            snap = target.snapshot() if hasattr(target, "snapshot") else None
            try:
                getattr(target, callback)(self.address, staker, token_id)
            except Exception:
                if snap is not None:
                    target.restore(snap)
                logger.warning(
                    "Staking listener failed, skipping",
                    extra={
                        "event": "gemhunters.listener_failed",
                        "index": index,
                        "callback": callback,
                        "token_id": token_id,
                    },
                    exc_info=True,
                )

    def snapshot(self) -> Dict[str, Any]:
        return {
            "collection": self.collection.snapshot(),
            "staked": copy.deepcopy(self._staked),
            "listeners": [
                (listener.target, listener.target.snapshot())
                for listener in self.listeners
                if hasattr(listener.target, "snapshot")
            ],
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.collection.restore(snapshot["collection"])
        self._staked = copy.deepcopy(snapshot["staked"])
        for target, target_snap in snapshot["listeners"]:
            target.restore(target_snap)

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        snap = self.snapshot()
        try:
            yield
        except Exception:
            self.restore(snap)
            raise
