"""
Fixtures for the vesting ledger, its token and the custody contract.
"""

import pytest

from gemvest.core.constants import TOTAL_BERAS, VESTING_POOL_TOTAL
from gemvest.core.contracts import ERC20Token, ERC721Token
from gemvest.core.defi import GemhuntersStaking, StakingListener, VestingLedger
from gemvest.simulation import SimulatedClock, deploy

from gemvest_tests.helpers import (
    ADMIN,
    ALICE,
    CUSTODY,
    LEDGER_ADDRESS,
    START,
    TOKEN_ADDRESS,
)


@pytest.fixture
def clock():
    """Ledger clock starting at a fixed timestamp."""
    return SimulatedClock(START)


@pytest.fixture
def token():
    """Reward token with the whole pool minted to the administrator."""
    token = ERC20Token(
        name="Beramonium Token",
        symbol="BERAMO",
        owner=ADMIN,
        address=TOKEN_ADDRESS,
    )
    token.mint(ADMIN, ADMIN, VESTING_POOL_TOTAL)
    return token


def _make_ledger(token, clock, **kwargs):
    return VestingLedger(
        token=token,
        staking_contract=CUSTODY,
        admin=ADMIN,
        time_provider=clock,
        address=LEDGER_ADDRESS,
        **kwargs,
    )


def _fund(ledger, token):
    token.approve(ADMIN, ledger.address, ledger.pool_total)
    ledger.initialize_vesting_pool(ADMIN)
    return ledger


@pytest.fixture
def ledger(token, clock):
    """Ledger whose pool has not been funded yet."""
    return _make_ledger(token, clock)


@pytest.fixture
def funded_ledger(ledger, token):
    """Ledger with the vesting pool initialized."""
    return _fund(ledger, token)


@pytest.fixture
def strict_ledger(token, clock):
    """Funded ledger that rejects mismatched unstake claimants."""
    return _fund(_make_ledger(token, clock, strict_exit_claimant=True), token)


@pytest.fixture
def collection():
    """Full-size collection with ids 0..9 minted to ALICE."""
    collection = ERC721Token(
        name="Beramonium",
        symbol="BERA",
        owner=ADMIN,
        max_supply=TOTAL_BERAS,
    )
    collection.mint(ADMIN, ALICE, 10)
    return collection


@pytest.fixture
def custody(collection, funded_ledger):
    """Custody contract at CUSTODY with the funded ledger as its only listener."""
    custody = GemhuntersStaking(collection=collection, admin=ADMIN, address=CUSTODY)
    custody.push_listener(ADMIN, StakingListener(target=funded_ledger))
    collection.set_approval_for_all(ALICE, CUSTODY, True)
    return custody


@pytest.fixture
def deployment(clock):
    """Full in-process deployment driven by the simulated clock."""
    return deploy(admin=ADMIN, clock=clock)
