"""
Reward-token callbacks into the ledger.

The ledger writes each record before calling the token, so a token that
re-enters the ledger during ``transfer`` sees the post-collection record,
and a token that fails after the write rolls the write back.
"""

import pytest

from gemvest.core.constants import VESTING_POOL_TOTAL
from gemvest.core.contracts import ERC20Token
from gemvest.core.defi import VestingLedger
from gemvest.core.exceptions import TokenError

from gemvest_tests.helpers import (
    ADMIN,
    ALICE,
    CUSTODY,
    DAILY,
    INITIAL,
    LEDGER_ADDRESS,
    STANDARD_ID,
    TOKEN_ADDRESS,
)


class ReentrantToken(ERC20Token):
    """Calls back into the ledger from inside ``transfer`` while armed."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.ledger = None
        self.armed = False
        self.observed = []
        self.reentrant_payouts = []

    def transfer(self, sender, recipient, amount):
        result = super().transfer(sender, recipient, amount)
        if self.armed:
            self.armed = False
            self.observed.append(self.ledger.vesting_state(STANDARD_ID))
            self.reentrant_payouts.append(
                self.ledger.collect_pending_rewards(recipient, STANDARD_ID)
            )
        return result


class FailingToken(ERC20Token):
    """Rejects every transfer while ``fail`` is set."""

    fail = False

    def transfer(self, sender, recipient, amount):
        if self.fail:
            super().transfer(sender, recipient, amount)
            raise TokenError("transfer hook rejected")
        return super().transfer(sender, recipient, amount)


def _deploy(token_cls, clock):
    token = token_cls(name="Reward", symbol="RWD", owner=ADMIN, address=TOKEN_ADDRESS)
    token.mint(ADMIN, ADMIN, VESTING_POOL_TOTAL)
    ledger = VestingLedger(
        token=token,
        staking_contract=CUSTODY,
        admin=ADMIN,
        time_provider=clock,
        address=LEDGER_ADDRESS,
    )
    token.approve(ADMIN, ledger.address, VESTING_POOL_TOTAL)
    ledger.initialize_vesting_pool(ADMIN)
    return token, ledger


def test_reentrant_collect_sees_committed_record(clock):
    token, ledger = _deploy(ReentrantToken, clock)
    token.ledger = ledger

    ledger.on_token_staked(CUSTODY, ALICE, STANDARD_ID)
    clock.advance_days(10)

    token.armed = True
    paid = ledger.collect_pending_rewards(ALICE, STANDARD_ID)

    assert paid == 10 * DAILY
    assert token.observed[0].days_collected == 10
    assert token.reentrant_payouts == [0]
    assert token.balance_of(ALICE) == INITIAL + 10 * DAILY


def test_reentrant_collect_during_unstake_flush(clock):
    token, ledger = _deploy(ReentrantToken, clock)
    token.ledger = ledger

    ledger.on_token_staked(CUSTODY, ALICE, STANDARD_ID)
    clock.advance_days(6)

    token.armed = True
    ledger.on_token_unstaked(CUSTODY, ALICE, STANDARD_ID)

    assert token.reentrant_payouts == [0]
    assert token.balance_of(ALICE) == INITIAL + 6 * DAILY
    assert not ledger.vesting_state(STANDARD_ID).is_active


def test_failed_payout_rolls_back_record(clock):
    token, ledger = _deploy(FailingToken, clock)
    ledger.on_token_staked(CUSTODY, ALICE, STANDARD_ID)
    clock.advance_days(4)
    word = ledger.store.word(STANDARD_ID)
    pool = ledger.pool_balance()

    token.fail = True
    with pytest.raises(TokenError):
        ledger.collect_pending_rewards(ALICE, STANDARD_ID)

    assert ledger.store.word(STANDARD_ID) == word
    assert ledger.pool_balance() == pool
    assert token.balance_of(ALICE) == INITIAL

    token.fail = False
    assert ledger.collect_pending_rewards(ALICE, STANDARD_ID) == 4 * DAILY


def test_failed_initial_unlock_leaves_id_unstaked(clock):
    token, ledger = _deploy(FailingToken, clock)
    token.fail = True

    with pytest.raises(TokenError):
        ledger.on_token_staked(CUSTODY, ALICE, STANDARD_ID)

    assert ledger.store.word(STANDARD_ID) == 0
    assert token.balance_of(ALICE) == 0
    assert ledger.pool_balance() == VESTING_POOL_TOTAL
