"""
Gemvest - NFT Staking Reward Vesting

Token-reward vesting for a fixed 6,000-piece NFT collection. Every token id
earns a one-time initial unlock the first time it is staked, followed by a
day-granular linear unlock over a 364-day horizon, paid from a pool that is
funded exactly once.

Main Components:
- Vesting ledger: per-token accrual records and payout logic
- Accrual engine: pure day/amount math and allocation multipliers
- Contracts: in-process ERC20 reward token and ERC721 collection models
- Custody: staking contract that fans out stake/unstake callbacks
- API and CLI: read-only HTTP endpoints and a local simulation tool
"""

__version__ = "0.1.0"
__author__ = "Gemvest Development Team"

__all__ = []
