"""
Gemvest Constants

Collection size, vesting horizon and reward allocation figures.

NOTE: Every figure here feeds VESTING_POOL_TOTAL. The ledger recomputes the
pool from the per-token allocations at construction and refuses to start if
the two disagree, so changing one constant without the others is caught
immediately.
"""

from typing import Final, FrozenSet

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_PER_DAY: Final[int] = 86400  # 60 * 60 * 24

# Packed records keep the timestamp in 48 bits
TIMESTAMP_BITS: Final[int] = 48
MAX_TIMESTAMP: Final[int] = (1 << TIMESTAMP_BITS) - 1

# =============================================================================
# COLLECTION
# =============================================================================

TOTAL_BERAS: Final[int] = 6000  # token ids 0..5999

# 1/1 pieces that earn UNIQUE_BERA_ALLOC_RATIO times the standard allocation
UNIQUE_BERA_IDS: Final[FrozenSet[int]] = frozenset(
    {
        55,
        417,
        931,
        1284,
        1777,
        2160,
        2613,
        3045,
        3498,
        3906,
        4444,
        4871,
        5503,
    }
)
UNIQUE_BERA_COUNT: Final[int] = 13

# =============================================================================
# VESTING SCHEDULE
# =============================================================================

TOKEN_DECIMALS: Final[int] = 18
ONE_TOKEN: Final[int] = 10**TOKEN_DECIMALS

VESTING_PERIOD_IN_DAYS: Final[int] = 364

# Total allocation for one standard token id
BASE_BERA_ALLOCATION: Final[int] = 7280 * ONE_TOKEN

# 50% paid on first stake
BASE_BERA_INITIAL_UNLOCK: Final[int] = BASE_BERA_ALLOCATION // 2

# Remainder spread evenly over the horizon (10 tokens/day)
BASE_BERA_DAILY_UNLOCK: Final[int] = (
    BASE_BERA_ALLOCATION - BASE_BERA_INITIAL_UNLOCK
) // VESTING_PERIOD_IN_DAYS

UNIQUE_BERA_ALLOC_RATIO: Final[int] = 10

VESTING_POOL_TOTAL: Final[int] = BASE_BERA_ALLOCATION * (
    (TOTAL_BERAS - UNIQUE_BERA_COUNT) + UNIQUE_BERA_COUNT * UNIQUE_BERA_ALLOC_RATIO
)

# =============================================================================
# ADDRESSES
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40
ADDRESS_HEX_LENGTH: Final[int] = 40
