"""
Unit tests for the ERC721 collection model.
"""

import pytest

from gemvest.core.constants import ZERO_ADDRESS
from gemvest.core.contracts import ERC721Token
from gemvest.core.exceptions import TokenError

from gemvest_tests.helpers import ADMIN, ALICE, BOB, CUSTODY


@pytest.fixture
def nft():
    return ERC721Token(
        name="Beramonium",
        symbol="BERA",
        base_uri="https://example.invalid/genesis/",
        owner=ADMIN,
        max_supply=5,
    )


class TestMinting:
    def test_sequential_ids(self, nft):
        assert nft.mint(ADMIN, ALICE, 3) == [0, 1, 2]
        assert nft.mint(ADMIN, BOB) == [3]
        assert nft.total_supply() == 4
        assert nft.balance_of(ALICE) == 3
        assert nft.owner_of(3) == BOB

    def test_max_supply(self, nft):
        nft.mint(ADMIN, ALICE, 5)
        with pytest.raises(TokenError):
            nft.mint(ADMIN, ALICE, 1)

    def test_owner_only(self, nft):
        with pytest.raises(TokenError):
            nft.mint(ALICE, ALICE, 1)

    def test_rejects_zero_recipient_and_quantity(self, nft):
        with pytest.raises(TokenError):
            nft.mint(ADMIN, ZERO_ADDRESS, 1)
        with pytest.raises(TokenError):
            nft.mint(ADMIN, ALICE, 0)

    def test_token_uri(self, nft):
        nft.mint(ADMIN, ALICE, 1)
        assert nft.token_uri(0) == "https://example.invalid/genesis/0"
        with pytest.raises(TokenError):
            nft.token_uri(4)


class TestTransfers:
    def test_owner_transfer(self, nft):
        nft.mint(ADMIN, ALICE, 1)
        nft.transfer_from(ALICE, ALICE, BOB, 0)

        assert nft.owner_of(0) == BOB
        assert nft.balance_of(ALICE) == 0
        assert nft.balance_of(BOB) == 1

    def test_unapproved_operator(self, nft):
        nft.mint(ADMIN, ALICE, 1)
        with pytest.raises(TokenError):
            nft.transfer_from(CUSTODY, ALICE, CUSTODY, 0)

    def test_single_token_approval_is_cleared(self, nft):
        nft.mint(ADMIN, ALICE, 1)
        nft.approve(ALICE, CUSTODY, 0)
        assert nft.get_approved(0) == CUSTODY

        nft.transfer_from(CUSTODY, ALICE, CUSTODY, 0)
        assert nft.owner_of(0) == CUSTODY
        assert nft.get_approved(0) == ZERO_ADDRESS

    def test_operator_approval(self, nft):
        nft.mint(ADMIN, ALICE, 2)
        nft.set_approval_for_all(ALICE, CUSTODY, True)
        assert nft.is_approved_for_all(ALICE, CUSTODY)

        nft.transfer_from(CUSTODY, ALICE, CUSTODY, 1)
        assert nft.owner_of(1) == CUSTODY

    def test_wrong_from(self, nft):
        nft.mint(ADMIN, ALICE, 1)
        with pytest.raises(TokenError):
            nft.transfer_from(BOB, BOB, ALICE, 0)

    def test_missing_token(self, nft):
        with pytest.raises(TokenError):
            nft.owner_of(0)

    def test_snapshot_restore(self, nft):
        nft.mint(ADMIN, ALICE, 1)
        snap = nft.snapshot()
        nft.set_approval_for_all(ALICE, CUSTODY, True)
        nft.transfer_from(CUSTODY, ALICE, CUSTODY, 0)

        nft.restore(snap)
        assert nft.owner_of(0) == ALICE
        assert not nft.is_approved_for_all(ALICE, CUSTODY)
        assert nft.balance_of(CUSTODY) == 0
