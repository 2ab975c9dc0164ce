"""Difficulty epoch metrics.

Derived figures for the dashboard, computed from raw node values:
- Epoch progress: epoch number, blocks until/since retarget
- Average block interval for the current epoch
- Estimated time until the next retarget
- Transaction throughput over the getchaintxstats window

All formulas depend on the 2016-block retarget period, a consensus constant.
"""

from typing import Optional

from chainstats.errors import UpstreamDataMissing
from chainstats.models.metrics_models import BlockInterval, DifficultyEpochProgress

BLOCKS_PER_DIFFICULTY_PERIOD = 2016
TARGET_SECONDS_PER_BLOCK = 10.0 * 60.0


def current_difficulty_epoch(block_count: int) -> int:
    """1-based epoch number containing ``block_count``."""
    return block_count // BLOCKS_PER_DIFFICULTY_PERIOD + 1


def height_of_last_adjustment(block_count: int) -> int:
    """First height of the epoch containing ``block_count``."""
    return (current_difficulty_epoch(block_count) - 1) * BLOCKS_PER_DIFFICULTY_PERIOD


def calculate_epoch_progress(block_count: int) -> DifficultyEpochProgress:
    """Locate a block height inside its difficulty epoch.

    Args:
        block_count: Current chain height

    Returns:
        DifficultyEpochProgress; blocks_until_retarget and
        blocks_since_last_retarget always sum to 2016

    Raises:
        ValueError: If block_count is negative
    """
    if block_count < 0:
        raise ValueError(f"block_count must be non-negative: {block_count}")

    percent_of_epoch_complete = (block_count / BLOCKS_PER_DIFFICULTY_PERIOD) % 1.0
    blocks_until_retarget = (1.0 - percent_of_epoch_complete) * BLOCKS_PER_DIFFICULTY_PERIOD
    blocks_since_last_retarget = BLOCKS_PER_DIFFICULTY_PERIOD - blocks_until_retarget

    return DifficultyEpochProgress(
        block_count=block_count,
        current_difficulty_epoch=current_difficulty_epoch(block_count),
        height_of_last_adjustment=height_of_last_adjustment(block_count),
        percent_of_epoch_complete=percent_of_epoch_complete,
        blocks_until_retarget=blocks_until_retarget,
        blocks_since_last_retarget=blocks_since_last_retarget,
    )


def calculate_block_interval(
    progress: DifficultyEpochProgress,
    time_of_last_block: int,
    time_of_last_adjustment_block: int,
) -> BlockInterval:
    """Average seconds per block mined since the last retarget.

    Integer division of elapsed seconds by whole blocks. At the first block of
    an epoch no block has been mined since the retarget and the average is
    None.
    """
    elapsed_seconds = time_of_last_block - time_of_last_adjustment_block
    blocks = progress.whole_blocks_since_last_retarget
    average: Optional[int] = None
    if not progress.is_epoch_start:
        average = elapsed_seconds // blocks
    return BlockInterval(
        elapsed_seconds=elapsed_seconds,
        blocks=blocks,
        average_seconds_per_block=average,
    )


def estimate_seconds_until_retarget(progress: DifficultyEpochProgress) -> float:
    """Remaining blocks at the nominal 600-second spacing."""
    return TARGET_SECONDS_PER_BLOCK * progress.blocks_until_retarget


def calculate_tps(
    window_tx_count: Optional[int], window_interval: Optional[int]
) -> float:
    """Transactions per second over the getchaintxstats window.

    Raises:
        UpstreamDataMissing: If the node left out the window figures or the
            window spans no time
    """
    if window_tx_count is None:
        raise UpstreamDataMissing("window_tx_count", source="getchaintxstats")
    if window_interval is None or window_interval <= 0:
        raise UpstreamDataMissing("window_interval", source="getchaintxstats")
    return float(window_tx_count) / float(window_interval)

