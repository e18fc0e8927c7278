"""Shared addresses and figures for the gemvest test suite."""

from gemvest.core.constants import (
    BASE_BERA_DAILY_UNLOCK,
    BASE_BERA_INITIAL_UNLOCK,
    SECONDS_PER_DAY,
    UNIQUE_BERA_ALLOC_RATIO,
)
from gemvest.simulation import DEFAULT_START_TIME


def addr(n: int) -> str:
    return "0x" + format(n, "040x")


ADMIN = addr(0xAD)
CUSTODY = addr(0xC0)
ALICE = addr(0xA1)
BOB = addr(0xB0)
OUTSIDER = addr(0xEE)
LEDGER_ADDRESS = addr(0x1E)
TOKEN_ADDRESS = addr(0xE20)

DAY = SECONDS_PER_DAY
START = DEFAULT_START_TIME

INITIAL = BASE_BERA_INITIAL_UNLOCK
DAILY = BASE_BERA_DAILY_UNLOCK
RATIO = UNIQUE_BERA_ALLOC_RATIO

STANDARD_ID = 100
UNIQUE_ID = 931
