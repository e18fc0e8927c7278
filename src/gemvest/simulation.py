"""
In-process deployment of the full vesting system.

Mirrors the production deployment order:

1. Reward token, with the whole pool minted to the administrator
2. NFT collection (fixed size, optional premint to the administrator)
3. Gemhunters custody over the collection
4. Vesting ledger wired to the token and the custody contract
5. Ledger registered as a custody listener (failures not tolerated)
6. Pool approved and initialized

Used by the CLI ``simulate``/``serve`` commands and by the integration
tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from gemvest.core import config
from gemvest.core.constants import SECONDS_PER_DAY, TOTAL_BERAS, VESTING_POOL_TOTAL
from gemvest.core.contracts import ERC20Token, ERC721Token
from gemvest.core.defi import GemhuntersStaking, StakingListener, VestingLedger

logger = logging.getLogger(__name__)

DEFAULT_START_TIME = 1_700_000_000
BASE_TOKEN_URI = "https://api.beramonium.io/api/v1/genesis/"


@dataclass
class SimulatedClock:
    """Settable clock; pass an instance wherever a time provider is expected."""

    now: int = DEFAULT_START_TIME

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now

    def advance_days(self, days: float, seconds_per_day: int = SECONDS_PER_DAY) -> int:
        return self.advance(int(days * seconds_per_day))


@dataclass
class Deployment:
    admin: str
    token: ERC20Token
    collection: ERC721Token
    custody: GemhuntersStaking
    ledger: VestingLedger
    clock: Optional[SimulatedClock] = None

    def mint_beras(self, to: str, quantity: int) -> list[int]:
        """Mint the next ``quantity`` collection ids to ``to``."""
        return self.collection.mint(self.admin, to, quantity)

    def stake(self, staker: str, token_ids: list[int]) -> None:
        """Approve custody for ``staker`` (if needed) and stake ``token_ids``."""
        if not self.collection.is_approved_for_all(staker, self.custody.address):
            self.collection.set_approval_for_all(staker, self.custody.address, True)
        self.custody.stake(staker, token_ids)

    def unstake_all(self, staker: str) -> list[int]:
        """Unstake every token ``staker`` has in custody."""
        count = self.custody.staked_bera_count(staker)
        return self.custody.unstake_by_indices(staker, list(range(count - 1, -1, -1)))


def deploy(
    admin: str,
    clock: Optional[Callable[[], int]] = None,
    premint: int = 0,
    initialize_pool: bool = True,
    strict_exit_claimant: Optional[bool] = None,
) -> Deployment:
    """
    Deploy token, collection, custody and ledger, wired together.

    Args:
        admin: Deployer / pool administrator
        clock: Time provider for the ledger (wall clock when omitted)
        premint: Collection ids minted to ``admin`` up front
        initialize_pool: Fund the vesting pool as the last step
        strict_exit_claimant: Forwarded to the ledger; defaults to
            ``Config.STRICT_EXIT_CLAIMANT``

    Returns:
        The wired deployment
    """
    if strict_exit_claimant is None:
        strict_exit_claimant = config.Config.STRICT_EXIT_CLAIMANT

    token = ERC20Token(name="Beramonium Token", symbol="BERAMO", owner=admin)
    token.mint(admin, admin, VESTING_POOL_TOTAL)

    collection = ERC721Token(
        name="Beramonium",
        symbol="BERA",
        base_uri=BASE_TOKEN_URI,
        owner=admin,
        max_supply=TOTAL_BERAS,
    )
    if premint:
        collection.mint(admin, admin, premint)

    custody = GemhuntersStaking(collection=collection, admin=admin)

    ledger = VestingLedger(
        token=token,
        staking_contract=custody.address,
        admin=admin,
        time_provider=clock,
        strict_exit_claimant=strict_exit_claimant,
    )

    custody.push_listener(admin, StakingListener(target=ledger, allow_fail=False))

    if initialize_pool:
        token.approve(admin, ledger.address, ledger.pool_total)
        ledger.initialize_vesting_pool(admin)

    logger.info(
        "Vesting system deployed",
        extra={
            "event": "simulation.deployed",
            "token": token.address[:10],
            "collection": collection.address[:10],
            "custody": custody.address[:10],
            "ledger": ledger.address[:10],
            "pool_initialized": ledger.pool_initialized,
        },
    )

    return Deployment(
        admin=admin,
        token=token,
        collection=collection,
        custody=custody,
        ledger=ledger,
        clock=clock if isinstance(clock, SimulatedClock) else None,
    )
