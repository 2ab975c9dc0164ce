"""
Typed arguments for node queries.

Request handlers receive loosely typed strings and integers; the argument
normalizer (chainstats.utils.request_args) turns them into these types before
anything is sent to the node.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

BLOCK_HASH_LENGTH = 64


class BlockVerbosity(int, Enum):
    """Level of detail returned by getblock."""

    RAW_HEX = 0  # serialized block as hex string
    SUMMARY = 1  # structured block, transactions as txids
    FULL = 2  # structured block with full transaction bodies


@dataclass(frozen=True)
class BlockTarget:
    """
    Identifies a block by height or by hash. Exactly one of the two is set.

    Attributes:
        height: Block height (non-negative)
        block_hash: 64 hex characters
    """

    height: Optional[int] = None
    block_hash: Optional[str] = None

    def __post_init__(self):
        if (self.height is None) == (self.block_hash is None):
            raise ValueError("BlockTarget needs exactly one of height or block_hash")
        if self.height is not None and self.height < 0:
            raise ValueError(f"Block height must be non-negative: {self.height}")

    @classmethod
    def from_height(cls, height: int) -> "BlockTarget":
        return cls(height=height)

    @classmethod
    def from_hash(cls, block_hash: str) -> "BlockTarget":
        return cls(block_hash=block_hash)

    @property
    def is_height(self) -> bool:
        return self.height is not None

    def to_rpc_param(self) -> Union[int, str]:
        """Value for getblockstats' hash_or_height parameter."""
        return self.height if self.is_height else self.block_hash
