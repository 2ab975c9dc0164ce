"""
Data models for derived chain metrics.

These dataclasses carry results between the calculation modules in
chainstats.metrics and the API response models.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DifficultyEpochProgress:
    """
    Position of a block height inside its difficulty epoch.

    Attributes:
        block_count: Height the figures were derived from
        current_difficulty_epoch: 1-based epoch number
        height_of_last_adjustment: First height of the current epoch
        percent_of_epoch_complete: Fraction of the epoch mined (0.0 to <1.0)
        blocks_until_retarget: Blocks left before the next retarget
        blocks_since_last_retarget: Blocks mined since the last retarget
    """

    block_count: int
    current_difficulty_epoch: int
    height_of_last_adjustment: int
    percent_of_epoch_complete: float
    blocks_until_retarget: float
    blocks_since_last_retarget: float

    @property
    def whole_blocks_since_last_retarget(self) -> int:
        """Exact integer count of blocks since the last retarget."""
        return self.block_count - self.height_of_last_adjustment

    @property
    def is_epoch_start(self) -> bool:
        return self.whole_blocks_since_last_retarget == 0


@dataclass(frozen=True)
class MarketSnapshotData:
    """
    Price and supply figures from outside the node.

    Attributes:
        price: Fiat price of one coin
        total_money_supply: Coins in circulation
        source: Where the figures came from ("static", "utxoset")
    """

    price: float
    total_money_supply: float
    source: str = "static"


@dataclass(frozen=True)
class BlockInterval:
    """
    Average spacing of the blocks mined in the current epoch.

    Attributes:
        elapsed_seconds: Time between the epoch's first block and the tip
        blocks: Blocks mined since the last retarget
        average_seconds_per_block: elapsed_seconds // blocks, None at epoch start
    """

    elapsed_seconds: int
    blocks: int
    average_seconds_per_block: Optional[int]
