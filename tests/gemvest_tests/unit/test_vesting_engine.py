"""
Unit tests for the accrual engine.

Covers allocation multipliers, whole-day accrual, horizon clamping and the
pool-size identity the ledger checks at construction.
"""

import pytest

from gemvest.core.constants import (
    BASE_BERA_ALLOCATION,
    ONE_TOKEN,
    TOTAL_BERAS,
    UNIQUE_BERA_IDS,
    VESTING_PERIOD_IN_DAYS,
    VESTING_POOL_TOTAL,
)
from gemvest.core.defi.vesting_engine import NO_ACCRUAL, AccrualEngine, LinearAccrual
from gemvest.core.defi.vesting_state import TokenVestingRecord

from gemvest_tests.helpers import ALICE, DAILY, DAY, INITIAL, RATIO, START, STANDARD_ID, UNIQUE_ID


@pytest.fixture
def engine():
    return AccrualEngine()


def _active(days_collected=0, ts=START):
    return TokenVestingRecord(
        days_collected=days_collected,
        initial_unlock_collected=True,
        staker=ALICE,
        last_collection_timestamp=ts,
    )


class TestScheduleConstants:
    def test_daily_unlock_is_ten_tokens(self):
        assert DAILY == 10 * ONE_TOKEN

    def test_initial_unlock_is_half_the_allocation(self):
        assert INITIAL * 2 == BASE_BERA_ALLOCATION

    def test_initial_plus_linear_is_the_allocation(self):
        assert INITIAL + DAILY * VESTING_PERIOD_IN_DAYS == BASE_BERA_ALLOCATION

    def test_unique_set_size(self):
        assert len(UNIQUE_BERA_IDS) == 13
        assert UNIQUE_ID in UNIQUE_BERA_IDS
        assert all(0 <= token_id < TOTAL_BERAS for token_id in UNIQUE_BERA_IDS)


class TestAllocation:
    def test_multiplier(self, engine):
        assert engine.allocation_multiplier(STANDARD_ID) == 1
        assert engine.allocation_multiplier(UNIQUE_ID) == RATIO

    def test_initial_unlock_scales_with_multiplier(self, engine):
        assert engine.initial_unlock(STANDARD_ID) == INITIAL
        assert engine.initial_unlock(UNIQUE_ID) == INITIAL * RATIO

    def test_total_allocation(self, engine):
        assert engine.total_allocation(STANDARD_ID) == BASE_BERA_ALLOCATION
        assert engine.total_allocation(UNIQUE_ID) == BASE_BERA_ALLOCATION * RATIO

    def test_pool_total_matches_constant(self, engine):
        assert engine.pool_total() == VESTING_POOL_TOTAL

    def test_pool_total_is_sum_of_allocations(self, engine):
        assert engine.pool_total() == sum(
            engine.total_allocation(token_id) for token_id in range(TOTAL_BERAS)
        )


class TestLinearAccrual:
    def test_inactive_record_accrues_nothing(self, engine):
        record = TokenVestingRecord(initial_unlock_collected=True)
        assert engine.linear_accrual(STANDARD_ID, record, START + 50 * DAY) == NO_ACCRUAL

    def test_whole_days(self, engine):
        accrual = engine.linear_accrual(STANDARD_ID, _active(), START + 10 * DAY)
        assert accrual == LinearAccrual(10, 10 * DAILY)

    def test_unique_id_accrues_ten_times(self, engine):
        accrual = engine.linear_accrual(UNIQUE_ID, _active(), START + 5 * DAY)
        assert accrual == LinearAccrual(5, 5 * DAILY * RATIO)

    def test_partial_day_does_not_count(self, engine):
        assert engine.linear_accrual(STANDARD_ID, _active(), START + DAY - 1) == NO_ACCRUAL
        accrual = engine.linear_accrual(STANDARD_ID, _active(), START + 2 * DAY + DAY // 2)
        assert accrual.days == 2

    def test_clock_before_timestamp(self, engine):
        assert engine.linear_accrual(STANDARD_ID, _active(), START - DAY) == NO_ACCRUAL
        assert engine.linear_accrual(STANDARD_ID, _active(), START) == NO_ACCRUAL

    def test_clamped_to_horizon(self, engine):
        accrual = engine.linear_accrual(STANDARD_ID, _active(days_collected=360), START + 10 * DAY)
        assert accrual == LinearAccrual(4, 4 * DAILY)

    def test_exhausted_record(self, engine):
        record = _active(days_collected=VESTING_PERIOD_IN_DAYS)
        assert engine.horizon_exhausted(record)
        assert engine.linear_accrual(STANDARD_ID, record, START + 10 * DAY) == NO_ACCRUAL

    def test_custom_schedule(self):
        engine = AccrualEngine(vesting_period_days=10, seconds_per_day=60)
        accrual = engine.linear_accrual(STANDARD_ID, _active(), START + 60 * 25)
        assert accrual == LinearAccrual(10, 10 * DAILY)
