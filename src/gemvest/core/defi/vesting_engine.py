"""
Accrual math for the vesting ledger.

Pure functions over a record and a timestamp: no state, no I/O. The ledger
asks the engine how many whole days a record has earned and what that is
worth, then commits the result itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, NamedTuple

from ..constants import (
    BASE_BERA_DAILY_UNLOCK,
    BASE_BERA_INITIAL_UNLOCK,
    SECONDS_PER_DAY,
    TOTAL_BERAS,
    UNIQUE_BERA_ALLOC_RATIO,
    UNIQUE_BERA_IDS,
    VESTING_PERIOD_IN_DAYS,
)
from .vesting_state import TokenVestingRecord


class LinearAccrual(NamedTuple):
    """Whole days earned since the last collection and their reward."""

    days: int
    amount: int


NO_ACCRUAL = LinearAccrual(0, 0)


@dataclass(frozen=True)
class AccrualEngine:
    """Vesting schedule parameters plus the functions that apply them.

    The defaults are the production schedule; tests and simulations may
    build an engine with other figures, and the ledger's pool-size check
    keeps any such engine honest.
    """

    vesting_period_days: int = VESTING_PERIOD_IN_DAYS
    seconds_per_day: int = SECONDS_PER_DAY
    initial_unlock_per_unit: int = BASE_BERA_INITIAL_UNLOCK
    daily_unlock_per_unit: int = BASE_BERA_DAILY_UNLOCK
    unique_ratio: int = UNIQUE_BERA_ALLOC_RATIO
    unique_ids: FrozenSet[int] = UNIQUE_BERA_IDS
    total_tokens: int = TOTAL_BERAS

    def allocation_multiplier(self, token_id: int) -> int:
        """10 for the statically enumerated unique ids, 1 otherwise."""
        return self.unique_ratio if token_id in self.unique_ids else 1

    def initial_unlock(self, token_id: int) -> int:
        return self.initial_unlock_per_unit * self.allocation_multiplier(token_id)

    def linear_accrual(
        self, token_id: int, record: TokenVestingRecord, now: int
    ) -> LinearAccrual:
        """
        Compute the linear reward a record has earned at ``now``.

        Only whole days count. The result is always relative to the stored
        timestamp, so collecting part-way through a day neither pays for
        that day nor moves the next day boundary.
        """
        if record.days_collected >= self.vesting_period_days:
            return NO_ACCRUAL
        if record.last_collection_timestamp == 0:
            return NO_ACCRUAL
        if now <= record.last_collection_timestamp:
            return NO_ACCRUAL

        days = (now - record.last_collection_timestamp) // self.seconds_per_day
        days = min(days, self.vesting_period_days - record.days_collected)
        if days <= 0:
            return NO_ACCRUAL

        amount = days * self.daily_unlock_per_unit * self.allocation_multiplier(token_id)
        return LinearAccrual(days, amount)

    def horizon_exhausted(self, record: TokenVestingRecord) -> bool:
        return record.days_collected >= self.vesting_period_days

    def total_allocation(self, token_id: int) -> int:
        """Initial plus full linear reward for one id over its lifetime."""
        per_unit = (
            self.initial_unlock_per_unit
            + self.daily_unlock_per_unit * self.vesting_period_days
        )
        return per_unit * self.allocation_multiplier(token_id)

    def pool_total(self) -> int:
        """Sum of every id's lifetime allocation."""
        unique = sum(1 for token_id in self.unique_ids if 0 <= token_id < self.total_tokens)
        standard = self.total_tokens - unique
        per_unit = (
            self.initial_unlock_per_unit
            + self.daily_unlock_per_unit * self.vesting_period_days
        )
        return per_unit * (standard + unique * self.unique_ratio)
