"""
Node passthrough routes.

Each endpoint normalizes its parameters, issues exactly one node query and
returns the reply as JSON:

- GET /getblockcount
- GET /getblockstats?hash_or_height=...   (also /getblockstats/{hash_or_height})
- GET /gettxoutsetinfo
- GET /getchaintxstats                    (also /getchaintxstats/{blockhash})
- GET /getdifficulty
- GET /getblockhash?height=...
- GET /getnetworkhashps
- GET /getblock?blockhash=...&verbosity=...
"""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_node
from chainstats.errors import NotImplementedParameter
from chainstats.utils.bitcoind_async import BitcoindAsyncClient
from chainstats.utils.request_args import (
    chain_tx_stats_args,
    network_hash_ps_args,
    parse_block_hash,
    parse_block_height,
    parse_block_target,
    parse_verbosity,
)

router = APIRouter(tags=["node"])

Node = Annotated[BitcoindAsyncClient, Depends(get_node)]


@router.get("/getblockcount", response_model=int)
async def get_block_count(node: Node) -> int:
    """Current chain height."""
    return await node.get_block_count()


async def _block_stats(
    node: BitcoindAsyncClient,
    hash_or_height: str,
    stats: Optional[str],
    target_type: Optional[str],
) -> dict:
    if stats is not None:
        raise NotImplementedParameter("stats")
    target = parse_block_target(hash_or_height, target_type)
    block_stats = await node.get_block_stats(target)
    return block_stats.model_dump(exclude_none=True)


@router.get("/getblockstats")
async def get_block_stats(
    node: Node,
    hash_or_height: Annotated[str, Query(description="Block height or 64-char block hash")],
    stats: Annotated[Optional[str], Query(description="Comma-separated stat names (not implemented)")] = None,
    target_type: Annotated[Optional[str], Query(description="Force 'height' or 'hash'")] = None,
) -> dict:
    """Per-block statistics for a height or hash."""
    return await _block_stats(node, hash_or_height, stats, target_type)


@router.get("/getblockstats/{hash_or_height}")
async def get_block_stats_by_path(
    node: Node,
    hash_or_height: str,
    stats: Optional[str] = None,
    target_type: Optional[str] = None,
) -> dict:
    return await _block_stats(node, hash_or_height, stats, target_type)


@router.get("/gettxoutsetinfo")
async def get_tx_out_set_info(
    node: Node,
    hash_type: Annotated[Optional[str], Query(description="UTXO set hash type (not implemented)")] = None,
) -> dict:
    """UTXO set summary."""
    if hash_type is not None:
        raise NotImplementedParameter("hash_type")
    info = await node.get_tx_out_set_info()
    return info.model_dump(exclude_none=True)


@router.get("/getchaintxstats")
async def get_chain_tx_stats(
    node: Node,
    n_blocks: Annotated[Optional[int], Query(description="Window size in blocks")] = None,
    blockhash: Annotated[Optional[str], Query(description="Hash of the window's final block")] = None,
) -> dict:
    """Transaction statistics over a trailing window (node default ~1 month)."""
    stats = await node.get_chain_tx_stats(**chain_tx_stats_args(n_blocks, blockhash))
    return stats.model_dump(exclude_none=True)


@router.get("/getchaintxstats/{blockhash}")
async def get_chain_tx_stats_by_path(
    node: Node,
    blockhash: str,
    n_blocks: Optional[int] = None,
) -> dict:
    stats = await node.get_chain_tx_stats(**chain_tx_stats_args(n_blocks, blockhash))
    return stats.model_dump(exclude_none=True)


@router.get("/getdifficulty", response_model=float)
async def get_difficulty(node: Node) -> float:
    """Current proof-of-work difficulty."""
    return await node.get_difficulty()


@router.get("/getblockhash", response_model=str)
async def get_block_hash(
    node: Node,
    height: Annotated[int, Query(description="Block height")],
) -> str:
    """Hash of the block at a height."""
    return await node.get_block_hash(parse_block_height(height))


@router.get("/getnetworkhashps", response_model=float)
async def get_network_hash_ps(
    node: Node,
    n_blocks: Annotated[Optional[int], Query(description="Blocks to average over, -1 for since last retarget")] = None,
    height: Annotated[Optional[int], Query(description="Estimate as of this height, -1 for tip")] = None,
) -> float:
    """Estimated network hashes per second."""
    return await node.get_network_hash_ps(**network_hash_ps_args(n_blocks, height))


@router.get("/getblock")
async def get_block(
    node: Node,
    blockhash: Annotated[str, Query(description="64-char block hash")],
    verbosity: Annotated[Optional[int], Query(description="0 hex, 1 summary, 2 full transactions")] = None,
) -> Any:
    """Block data at the requested level of detail."""
    return await node.get_block(parse_block_hash(blockhash), parse_verbosity(verbosity))
