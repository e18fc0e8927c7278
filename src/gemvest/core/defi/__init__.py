"""
Gemvest DeFi Components.

- Vesting: Per-token initial + linear reward vesting for staked NFTs
- Engine: Stateless accrual math over packed vesting records
- Custody: Gemhunters NFT staking with stake/unstake listeners
- Access Control: ADMIN and STAKER roles
"""

from .access_control import Role, RoleBasedAccessControl, requires_role
from .gemhunters import GemhuntersStaking, StakingListener, TokenStakingListener
from .vesting_engine import AccrualEngine, LinearAccrual
from .vesting_ledger import VestingEvent, VestingLedger
from .vesting_state import TokenVestingRecord, VestingRecordStore

__all__ = [
    # Vesting
    "VestingLedger",
    "VestingEvent",
    "AccrualEngine",
    "LinearAccrual",
    "TokenVestingRecord",
    "VestingRecordStore",
    # Custody
    "GemhuntersStaking",
    "StakingListener",
    "TokenStakingListener",
    # Access Control
    "Role",
    "RoleBasedAccessControl",
    "requires_role",
]
