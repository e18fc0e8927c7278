"""
Gemvest Contract Models.

In-process models of the contracts the vesting ledger collaborates with:
- ERC20: Fungible reward token
- ERC721: NFT collection whose token ids earn rewards
"""

from .erc20 import ERC20Token, RewardToken, TokenEvent
from .erc721 import ERC721Token, NFTEvent

__all__ = [
    "ERC20Token",
    "RewardToken",
    "TokenEvent",
    "ERC721Token",
    "NFTEvent",
]
