"""
NFT Staking Reward Vesting Ledger.

Tracks, per collection token id, a one-time initial unlock and a
day-granular linear unlock over the vesting horizon, and pays both out of a
pool funded once by the administrator.

Callers:
- The custody contract (STAKER role) reports stake/unstake transitions and
  may collect on behalf of stakers.
- The current staker of a token id may collect its own linear rewards.
- The administrator (ADMIN role) funds the pool exactly once.

Every public mutating method is one transaction: it either commits fully or
raises with no observable change, token balances included. Within a
transaction the record is written before the reward token is called, so a
token that calls back into the ledger sees the updated record and cannot
collect the same days twice.
"""

from __future__ import annotations

import hashlib
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ..constants import (
    MAX_TIMESTAMP,
    UNIQUE_BERA_COUNT,
    VESTING_POOL_TOTAL,
    ZERO_ADDRESS,
)
from ..contracts.erc20 import RewardToken
from ..exceptions import (
    AlreadyActiveError,
    MismatchedClaimantError,
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
    PoolSizeMismatchError,
    TimestampRangeError,
    UnauthorizedError,
    ZeroIdentityError,
)
from .access_control import Role, RoleBasedAccessControl, requires_role
from .vesting_engine import AccrualEngine
from .vesting_state import (
    TokenVestingRecord,
    VestingRecordStore,
    check_token_id,
    normalize_address,
)

logger = logging.getLogger(__name__)

KIND_INITIAL = "initial"
KIND_LINEAR = "linear"


@dataclass
class VestingEvent:
    """Ledger event (VestingPoolInitialized or RewardsCollected)."""

    event_type: str
    amount: int
    token_id: Optional[int] = None
    staker: str = ""
    kind: str = ""
    timestamp: float = field(default_factory=time.time)


class VestingLedger:
    """
    Per-token vesting ledger backed by a packed record store.

    Args:
        token: Reward token the pool is held in
        staking_contract: Address of the custody contract (granted STAKER)
        admin: Deployer address; seeds ADMIN on a fresh role table and must
            already hold ADMIN on a supplied one
        store: Record store; a fresh one is created when omitted
        engine: Accrual parameters; production schedule when omitted
        access_control: Role table; a fresh one is created when omitted
        pool_total: Amount pulled by :meth:`initialize_vesting_pool`
        time_provider: Returns the current unix time in seconds
        strict_exit_claimant: Reject unstake callbacks whose claimant is not
            the recorded staker instead of only logging them
        address: Ledger address; derived when omitted

    Raises:
        PoolSizeMismatchError: If the engine's allocations do not add up to
            ``pool_total``
        UnauthorizedError: If ``admin`` lacks ADMIN on ``access_control``
    """

    def __init__(
        self,
        token: RewardToken,
        staking_contract: str,
        admin: str,
        store: Optional[VestingRecordStore] = None,
        engine: Optional[AccrualEngine] = None,
        access_control: Optional[RoleBasedAccessControl] = None,
        pool_total: int = VESTING_POOL_TOTAL,
        time_provider: Optional[Callable[[], int]] = None,
        strict_exit_claimant: bool = False,
        address: str = "",
    ) -> None:
        self.token = token
        self.engine = engine or AccrualEngine()
        self.store = store if store is not None else VestingRecordStore(self.engine.total_tokens)
        self.pool_total = pool_total
        self.strict_exit_claimant = strict_exit_claimant
        self._time_provider = time_provider or (lambda: int(time.time()))

        if not address:
            addr_hash = hashlib.sha3_256(
                f"VestingLedger{staking_contract}{admin}{time.time()}".encode()
            ).digest()
            address = f"0x{addr_hash[-20:].hex()}"
        self.address = normalize_address(address)

        self._check_pool_size()

        self.access_control = access_control or RoleBasedAccessControl(admin_address=admin)
        self.access_control.grant_role(admin, Role.STAKER.value, staking_contract)

        self.pool_initialized = False
        self.events: List[VestingEvent] = []

        logger.info(
            "VestingLedger deployed",
            extra={
                "event": "vesting.deployed",
                "address": self.address,
                "staking_contract": staking_contract.lower()[:10],
                "pool_total": self.pool_total,
            },
        )

    # ==================== View Functions ====================

    def vesting_state(self, token_id: int) -> TokenVestingRecord:
        """Return the raw record for a token id."""
        return self.store.get(token_id)

    def allocation_multiplier(self, token_id: int) -> int:
        return self.engine.allocation_multiplier(check_token_id(token_id, self.store.size))

    def pending_rewards(self, token_id: int) -> int:
        """
        Rewards a token id could collect right now.

        Includes the initial unlock if it has never been paid, plus any whole
        days of linear reward accrued in the current accrual period.

        Raises:
            InvalidIdentifierError: If the id is out of range
        """
        record = self.store.get(token_id)
        pending = 0
        if not record.initial_unlock_collected:
            pending += self.engine.initial_unlock(token_id)
        pending += self.engine.linear_accrual(token_id, record, self._now()).amount
        return pending

    def pending_rewards_batch(self, token_ids: Iterable[int]) -> List[int]:
        """Element-wise :meth:`pending_rewards`; duplicates are kept."""
        return [self.pending_rewards(token_id) for token_id in token_ids]

    def pending_rewards_batch_total(self, token_ids: Iterable[int]) -> int:
        """Sum of :meth:`pending_rewards`; duplicates are counted as given."""
        return sum(self.pending_rewards_batch(token_ids))

    def is_pool_initialized(self) -> bool:
        return self.pool_initialized

    def pool_balance(self) -> int:
        return self.token.balance_of(self.address)

    # ==================== Custody Callbacks ====================

    @requires_role(Role.STAKER.value)
    def on_token_staked(self, caller: str, staker: str, token_id: int) -> None:
        """
        Start an accrual period for ``token_id``.

        Pays the initial unlock to ``staker`` the first time the id is ever
        staked. If the id has already vested its full horizon, the period
        is not opened.

        Raises:
            UnauthorizedError: If caller lacks the STAKER role
            InvalidIdentifierError: If the id is out of range
            ZeroIdentityError: If ``staker`` is the zero address
            AlreadyActiveError: If the id is already in an accrual period
            PoolNotInitializedError: If an initial unlock is due before funding
        """
        with self._atomic():
            check_token_id(token_id, self.store.size)
            staker_norm = normalize_address(staker)
            if staker_norm == ZERO_ADDRESS:
                raise ZeroIdentityError("Staker is the zero address")

            record = self.store.get(token_id)
            if record.is_active:
                raise AlreadyActiveError(
                    f"Token {token_id} already staked",
                    details={"token_id": token_id, "staker": record.staker},
                )

            payout = 0
            if not record.initial_unlock_collected:
                self._require_pool_initialized()
                record = replace(record, initial_unlock_collected=True)
                payout = self.engine.initial_unlock(token_id)

            if not self.engine.horizon_exhausted(record):
                record = record.activated(staker_norm, self._now())

            logger.info(
                "Token staked",
                extra={
                    "event": "vesting.staked",
                    "token_id": token_id,
                    "staker": staker_norm[:10],
                    "active": record.is_active,
                },
            )
            self._commit_then_pay(token_id, record, staker_norm, payout, KIND_INITIAL)

    @requires_role(Role.STAKER.value)
    def on_token_unstaked(self, caller: str, staker: str, token_id: int) -> None:
        """
        Close the accrual period for ``token_id``.

        Flushes accrued linear rewards to the recorded staker, then clears
        the staker and timestamp. The custody contract is trusted to pass the
        right claimant; a mismatch is only logged unless
        ``strict_exit_claimant`` is set.

        Raises:
            UnauthorizedError: If caller lacks the STAKER role
            InvalidIdentifierError: If the id is out of range
            MismatchedClaimantError: In strict mode, on claimant mismatch
        """
        with self._atomic():
            record = self.store.get(token_id)

            if record.is_active and staker.lower() != record.staker:
                if self.strict_exit_claimant:
                    raise MismatchedClaimantError(
                        f"Token {token_id} is staked by {record.staker}, not {staker.lower()}",
                        details={"token_id": token_id, "staker": record.staker},
                    )
                logger.warning(
                    "Unstake claimant differs from recorded staker",
                    extra={
                        "event": "vesting.claimant_mismatch",
                        "token_id": token_id,
                        "claimant": staker.lower()[:10],
                        "staker": record.staker[:10],
                    },
                )

            if not self.engine.horizon_exhausted(record):
                self._collect(token_id)
                record = self.store.get(token_id)

            self.store.put(token_id, record.deactivated())

            logger.info(
                "Token unstaked",
                extra={
                    "event": "vesting.unstaked",
                    "token_id": token_id,
                    "days_collected": record.days_collected,
                },
            )

    # ==================== Collection ====================

    def collect_pending_rewards(self, caller: str, token_id: int) -> int:
        """
        Pay out linear rewards accrued for ``token_id``.

        Callable by the recorded staker or the custody contract. Advances the
        record by whole days only, so the next day boundary is unchanged.

        Returns:
            Amount transferred (0 if nothing had accrued)

        Raises:
            InvalidIdentifierError: If the id is out of range
            UnauthorizedError: If caller is neither staker nor custody contract
            PoolNotInitializedError: If the pool has not been funded
        """
        with self._atomic():
            record = self.store.get(token_id)
            caller_norm = caller.lower()
            is_staker = record.staker != ZERO_ADDRESS and caller_norm == record.staker
            if not is_staker and not self.access_control.has_role(Role.STAKER.value, caller_norm):
                raise UnauthorizedError(
                    f"Caller {caller_norm[:10]} may not collect token {token_id}",
                    details={"token_id": token_id, "caller": caller_norm},
                )
            return self._collect(token_id)

    def collect_pending_rewards_batch(self, caller: str, token_ids: Iterable[int]) -> int:
        """
        :meth:`collect_pending_rewards` over ``token_ids`` in order.

        All-or-nothing: if any id fails, nothing is collected.

        Returns:
            Total amount transferred
        """
        with self._atomic():
            return sum(self.collect_pending_rewards(caller, token_id) for token_id in token_ids)

    # ==================== Pool ====================

    @requires_role(Role.ADMIN.value)
    def initialize_vesting_pool(self, caller: str) -> None:
        """
        Pull the full pool from ``caller`` into the ledger (once).

        The caller must have approved the ledger for ``pool_total``.

        Raises:
            UnauthorizedError: If caller lacks the ADMIN role
            PoolAlreadyInitializedError: On a second call
            TokenError: If the token pull fails
        """
        with self._atomic():
            if self.pool_initialized:
                raise PoolAlreadyInitializedError("Vesting pool already initialized")

            self.pool_initialized = True
            self.token.transfer_from(self.address, caller, self.address, self.pool_total)

            self.events.append(VestingEvent(event_type="VestingPoolInitialized", amount=self.pool_total))
            logger.info(
                "Vesting pool initialized",
                extra={
                    "event": "vesting.pool_initialized",
                    "amount": self.pool_total,
                    "admin": caller.lower()[:10],
                },
            )

    # ==================== Internals ====================

    def _collect(self, token_id: int) -> int:
        self._require_pool_initialized()
        record = self.store.get(token_id)
        accrual = self.engine.linear_accrual(token_id, record, self._now())
        if accrual.amount == 0:
            return 0

        updated = record.advanced(accrual.days, self.engine.seconds_per_day)
        self._commit_then_pay(token_id, updated, record.staker, accrual.amount, KIND_LINEAR)
        return accrual.amount

    def _commit_then_pay(
        self,
        token_id: int,
        record: TokenVestingRecord,
        recipient: str,
        amount: int,
        kind: str,
    ) -> None:
        # Record first; the transfer may re-enter the ledger
        self.store.put(token_id, record)

        if amount <= 0:
            return

        self.token.transfer(self.address, recipient, amount)

        self.events.append(
            VestingEvent(
                event_type="RewardsCollected",
                amount=amount,
                token_id=token_id,
                staker=recipient,
                kind=kind,
            )
        )
        logger.info(
            "Rewards collected",
            extra={
                "event": "vesting.rewards_collected",
                "token_id": token_id,
                "staker": recipient[:10],
                "amount": amount,
                "kind": kind,
            },
        )

    def _require_pool_initialized(self) -> None:
        if not self.pool_initialized:
            raise PoolNotInitializedError("Vesting pool not initialized")

    def _now(self) -> int:
        timestamp = self._time_provider()
        try:
            now = int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc
        if now <= 0 or now > MAX_TIMESTAMP:
            raise TimestampRangeError(f"Clock outside packable range: {now}")
        return now

    def _check_pool_size(self) -> None:
        unique = len(self.engine.unique_ids)
        computed = self.engine.pool_total()
        if unique != UNIQUE_BERA_COUNT or computed != self.pool_total:
            raise PoolSizeMismatchError(
                f"Vesting allocations add up to {computed}, pool total is {self.pool_total}",
                details={
                    "computed": computed,
                    "pool_total": self.pool_total,
                    "unique_count": unique,
                },
            )

    # ==================== Transactions ====================

    def snapshot(self) -> Dict[str, Any]:
        """Capture ledger and reward-token state."""
        return {
            "store": self.store.snapshot(),
            "pool_initialized": self.pool_initialized,
            "events_len": len(self.events),
            "token": self.token.snapshot(),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.store.restore(snapshot["store"])
        self.pool_initialized = snapshot["pool_initialized"]
        del self.events[snapshot["events_len"]:]
        self.token.restore(snapshot["token"])

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        snap = self.snapshot()
        try:
            yield
        except Exception:
            self.restore(snap)
            raise

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize ledger state (records, pool flag, address)."""
        return {
            "address": self.address,
            "pool_total": str(self.pool_total),
            "pool_initialized": self.pool_initialized,
            "store": self.store.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        token: RewardToken,
        staking_contract: str,
        admin: str,
        **kwargs: Any,
    ) -> "VestingLedger":
        """Rebuild a ledger from :meth:`to_dict` output."""
        ledger = cls(
            token=token,
            staking_contract=staking_contract,
            admin=admin,
            store=VestingRecordStore.from_dict(data["store"]),
            pool_total=int(data.get("pool_total", VESTING_POOL_TOTAL)),
            address=data["address"],
            **kwargs,
        )
        ledger.pool_initialized = bool(data.get("pool_initialized", False))
        return ledger
