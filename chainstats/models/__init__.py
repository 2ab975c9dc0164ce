"""
Typed values shared by the node client, the normalizer and the aggregator.
"""

from chainstats.models.metrics_models import (
    BlockInterval,
    DifficultyEpochProgress,
    MarketSnapshotData,
)
from chainstats.models.node_args import BLOCK_HASH_LENGTH, BlockTarget, BlockVerbosity

__all__ = [
    "BLOCK_HASH_LENGTH",
    "BlockInterval",
    "BlockTarget",
    "BlockVerbosity",
    "DifficultyEpochProgress",
    "MarketSnapshotData",
]
