"""Request argument normalization.

Turns the loosely typed values an HTTP request carries into the typed
arguments the node client expects:

- hash-or-height strings -> BlockTarget
- optional verbosity integer -> BlockVerbosity
- optional windowing parameters -> keyword arguments with unset values dropped

Every rejection raises InvalidArgument so the API can answer with 400.
"""

import re
from typing import Optional

from chainstats.errors import InvalidArgument
from chainstats.models.node_args import BLOCK_HASH_LENGTH, BlockTarget, BlockVerbosity

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")

TARGET_TYPE_HEIGHT = "height"
TARGET_TYPE_HASH = "hash"


def parse_block_hash(value: str) -> str:
    """Validate a block hash (64 hex characters).

    Args:
        value: Candidate hash

    Returns:
        The hash unchanged

    Raises:
        InvalidArgument: If the length or alphabet is wrong
    """
    if len(value) != BLOCK_HASH_LENGTH or not _HEX_RE.match(value):
        raise InvalidArgument(
            f"Invalid block hash {value!r}: expected {BLOCK_HASH_LENGTH} hex characters"
        )
    return value


def parse_block_height(value) -> int:
    """Parse an unsigned block height from a string or integer.

    Raises:
        InvalidArgument: If the value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise InvalidArgument(f"Invalid block height {value!r}")
    if isinstance(value, int):
        height = value
    else:
        text = str(value)
        if not (text.isascii() and text.isdigit()):
            raise InvalidArgument(f"Invalid block height {value!r}: not an unsigned integer")
        height = int(text)
    if height < 0:
        raise InvalidArgument(f"Invalid block height {value!r}: must be non-negative")
    return height


def parse_block_target(value: str, target_type: Optional[str] = None) -> BlockTarget:
    """Classify a hash-or-height string.

    Without ``target_type`` a 64-character string is taken as a block hash and
    anything else is parsed as a height. A 64-digit height would therefore be
    read as a hash; callers that need to send one pass ``target_type="height"``.

    Args:
        value: Block hash or height as received in the request
        target_type: Optional explicit tag, "height" or "hash"

    Returns:
        BlockTarget with exactly one variant set

    Raises:
        InvalidArgument: If the value cannot be read as the chosen variant
    """
    if target_type is not None:
        tag = target_type.lower()
        if tag == TARGET_TYPE_HEIGHT:
            return BlockTarget.from_height(parse_block_height(value))
        if tag == TARGET_TYPE_HASH:
            return BlockTarget.from_hash(parse_block_hash(value))
        raise InvalidArgument(
            f"Unsupported target_type {target_type!r}: expected 'height' or 'hash'"
        )

    if len(value) == BLOCK_HASH_LENGTH:
        return BlockTarget.from_hash(parse_block_hash(value))
    return BlockTarget.from_height(parse_block_height(value))


def parse_verbosity(value: Optional[int]) -> Optional[BlockVerbosity]:
    """Map an optional integer to a getblock verbosity level.

    None is passed through so the node applies its own default.

    Raises:
        InvalidArgument: For anything other than 0, 1 or 2
    """
    if value is None:
        return None
    try:
        return BlockVerbosity(value)
    except ValueError:
        raise InvalidArgument(
            f"Unsupported verbosity {value!r}: expected 0 (hex), 1 (summary) or 2 (full)"
        ) from None


def chain_tx_stats_args(
    n_blocks: Optional[int] = None, blockhash: Optional[str] = None
) -> dict:
    """Keyword arguments for getchaintxstats; unset parameters are left out."""
    args = {}
    if n_blocks is not None:
        if n_blocks < 0:
            raise InvalidArgument(f"Invalid n_blocks {n_blocks}: must be non-negative")
        args["n_blocks"] = n_blocks
    if blockhash is not None:
        args["blockhash"] = parse_block_hash(blockhash)
    return args


def network_hash_ps_args(
    n_blocks: Optional[int] = None, height: Optional[int] = None
) -> dict:
    """Keyword arguments for getnetworkhashps; unset parameters are left out.

    The node accepts -1 for both: n_blocks=-1 means "since the last difficulty
    change" and height=-1 means the current tip.
    """
    args = {}
    if n_blocks is not None:
        if n_blocks < -1:
            raise InvalidArgument(f"Invalid n_blocks {n_blocks}: must be -1 or greater")
        args["n_blocks"] = n_blocks
    if height is not None:
        if height < -1:
            raise InvalidArgument(f"Invalid height {height}: must be -1 or greater")
        args["height"] = height
    return args
