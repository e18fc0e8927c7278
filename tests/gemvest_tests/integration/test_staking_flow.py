"""
End-to-end staking flow over a full in-process deployment.

Token, collection, custody and ledger are deployed and wired the same way
as production: the ledger is a custody listener and the pool is funded
before anyone stakes.
"""

import pytest

from gemvest.core.constants import VESTING_POOL_TOTAL

from gemvest_tests.helpers import ADMIN, ALICE, BOB, DAILY, INITIAL, RATIO, UNIQUE_ID

pytestmark = pytest.mark.integration

PREMINT = 125


@pytest.fixture
def system(deployment):
    deployment.mint_beras(ADMIN, PREMINT)
    deployment.mint_beras(ALICE, 5)
    return deployment


def test_deployment_wiring(deployment):
    assert deployment.ledger.pool_initialized
    assert deployment.ledger.pool_balance() == VESTING_POOL_TOTAL
    assert deployment.token.balance_of(ADMIN) == 0
    assert [listener.target for listener in deployment.custody.listeners] == [deployment.ledger]
    assert deployment.ledger.access_control.has_role("staker", deployment.custody.address)


def test_stake_wait_unstake(system):
    token_id = PREMINT
    assert system.token.balance_of(ALICE) == 0

    system.collection.approve(ALICE, system.custody.address, token_id)
    system.custody.stake(ALICE, [token_id])

    assert system.collection.owner_of(token_id) == system.custody.address
    assert system.token.balance_of(ALICE) == INITIAL
    assert system.ledger.vesting_state(token_id).initial_unlock_collected

    system.clock.advance_days(30)
    pending = system.ledger.pending_rewards(token_id)
    assert pending == 30 * DAILY

    system.custody.unstake_by_indices(ALICE, [0])
    assert system.token.balance_of(ALICE) == INITIAL + pending
    assert system.collection.owner_of(token_id) == ALICE


def test_unique_bera(system):
    system.mint_beras(ALICE, UNIQUE_ID - PREMINT - 5 + 1)
    assert system.collection.owner_of(UNIQUE_ID) == ALICE

    system.stake(ALICE, [UNIQUE_ID])
    assert system.token.balance_of(ALICE) == INITIAL * RATIO

    system.clock.advance_days(30)
    assert system.ledger.pending_rewards(UNIQUE_ID) == 30 * DAILY * RATIO

    system.unstake_all(ALICE)
    assert system.token.balance_of(ALICE) == (INITIAL + 30 * DAILY) * RATIO


def test_collect_while_staked_then_transfer_nft(system):
    token_id = PREMINT + 1
    system.stake(ALICE, [token_id])
    system.clock.advance_days(12)
    assert system.ledger.collect_pending_rewards(ALICE, token_id) == 12 * DAILY

    system.clock.advance_days(3)
    system.unstake_all(ALICE)
    system.collection.transfer_from(ALICE, ALICE, BOB, token_id)

    system.stake(BOB, [token_id])
    assert system.token.balance_of(BOB) == 0
    system.clock.advance_days(5)
    system.unstake_all(BOB)

    assert system.token.balance_of(ALICE) == INITIAL + 15 * DAILY
    assert system.token.balance_of(BOB) == 5 * DAILY
    assert system.ledger.vesting_state(token_id).days_collected == 20


def test_many_stakers_share_the_pool(system):
    system.mint_beras(BOB, 3)
    alice_ids = system.collection.next_token_id - 8, system.collection.next_token_id - 7
    bob_ids = list(range(system.collection.next_token_id - 3, system.collection.next_token_id))

    system.stake(ALICE, list(alice_ids))
    system.stake(BOB, bob_ids)
    system.clock.advance_days(400)
    system.unstake_all(ALICE)
    system.unstake_all(BOB)

    paid = system.token.balance_of(ALICE) + system.token.balance_of(BOB)
    assert paid == 5 * system.ledger.engine.total_allocation(PREMINT)
    assert system.ledger.pool_balance() == VESTING_POOL_TOTAL - paid
