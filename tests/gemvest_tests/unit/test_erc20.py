"""
Unit tests for the ERC20 reward token model.
"""

import pytest

from gemvest.core.constants import ZERO_ADDRESS
from gemvest.core.contracts import ERC20Token, RewardToken
from gemvest.core.exceptions import TokenError

from gemvest_tests.helpers import ADMIN, ALICE, BOB


@pytest.fixture
def erc20():
    token = ERC20Token(name="Reward", symbol="RWD", owner=ADMIN)
    token.mint(ADMIN, ALICE, 1_000)
    return token


class TestERC20Token:
    def test_satisfies_reward_token_protocol(self, erc20):
        assert isinstance(erc20, RewardToken)

    def test_mint(self, erc20):
        assert erc20.total_supply == 1_000
        assert erc20.balance_of(ALICE) == 1_000
        assert erc20.events[-1].from_address == ZERO_ADDRESS

    def test_mint_owner_only(self, erc20):
        with pytest.raises(TokenError):
            erc20.mint(ALICE, ALICE, 1)

    def test_transfer(self, erc20):
        assert erc20.transfer(ALICE, BOB, 300)
        assert erc20.balance_of(ALICE) == 700
        assert erc20.balance_of(BOB) == 300
        assert erc20.events[-1].event_type == "Transfer"

    def test_transfer_is_case_insensitive(self, erc20):
        erc20.transfer(ALICE.upper().replace("0X", "0x"), BOB, 1)
        assert erc20.balance_of(ALICE) == 999

    def test_transfer_exceeding_balance(self, erc20):
        with pytest.raises(TokenError):
            erc20.transfer(ALICE, BOB, 1_001)

    def test_transfer_to_zero_address(self, erc20):
        with pytest.raises(TokenError):
            erc20.transfer(ALICE, ZERO_ADDRESS, 1)

    def test_negative_amount(self, erc20):
        with pytest.raises(TokenError):
            erc20.transfer(ALICE, BOB, -1)

    def test_transfer_from_uses_allowance(self, erc20):
        erc20.approve(ALICE, BOB, 500)
        erc20.transfer_from(BOB, ALICE, BOB, 200)

        assert erc20.allowance(ALICE, BOB) == 300
        assert erc20.balance_of(BOB) == 200

    def test_transfer_from_without_allowance(self, erc20):
        with pytest.raises(TokenError):
            erc20.transfer_from(BOB, ALICE, BOB, 1)

    def test_unlimited_allowance_not_decremented(self, erc20):
        erc20.approve(ALICE, BOB, erc20.UINT256_MAX)
        erc20.transfer_from(BOB, ALICE, BOB, 10)
        assert erc20.allowance(ALICE, BOB) == erc20.UINT256_MAX

    def test_snapshot_restore(self, erc20):
        snap = erc20.snapshot()
        erc20.approve(ALICE, BOB, 5)
        erc20.transfer(ALICE, BOB, 100)

        erc20.restore(snap)
        assert erc20.balance_of(ALICE) == 1_000
        assert erc20.balance_of(BOB) == 0
        assert erc20.allowance(ALICE, BOB) == 0
        assert len(erc20.events) == 1

    def test_serialization(self, erc20):
        erc20.approve(ALICE, BOB, 7)
        restored = ERC20Token.from_dict(erc20.to_dict())

        assert restored.address == erc20.address
        assert restored.balance_of(ALICE) == 1_000
        assert restored.allowance(ALICE, BOB) == 7
        assert restored.total_supply == 1_000
