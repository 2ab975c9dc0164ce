"""Async bitcoind JSON-RPC client.

Async client for the Bitcoin Core RPC interface with:
- Connection pooling (one httpx.AsyncClient per process)
- Per-call timeout from NodeConfig
- Named parameters, so unset optional arguments fall back to node defaults
- Translation of transport and RPC failures into chainstats errors

Usage:
    async with BitcoindAsyncClient(NodeConfig.from_env()) as node:
        height = await node.get_block_count()
        stats = await node.get_block_stats(BlockTarget.from_height(height))
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Sequence, Union

import httpx

from api.models.node_models import (
    BlockStats,
    ChainTxStats,
    TxOutSetInfo,
    parse_block_stats,
)
from chainstats.config import NodeConfig
from chainstats.errors import InvalidArgument, UpstreamTimeout, UpstreamUnavailable
from chainstats.models.node_args import BlockTarget, BlockVerbosity

logger = logging.getLogger(__name__)

# RPC error codes the node uses when the caller's arguments are at fault
RPC_TYPE_ERROR = -3
RPC_INVALID_ADDRESS_OR_KEY = -5
RPC_INVALID_PARAMETER = -8
CALLER_ERROR_CODES = frozenset(
    {RPC_TYPE_ERROR, RPC_INVALID_ADDRESS_OR_KEY, RPC_INVALID_PARAMETER}
)


class BitcoindAsyncClient:
    """Node data provider backed by bitcoind's JSON-RPC interface.

    Every method issues exactly one RPC call. Failures raise
    UpstreamUnavailable (node side) or InvalidArgument (node rejected the
    arguments); nothing is retried.

    Example:
        async with BitcoindAsyncClient(config) as node:
            difficulty = await node.get_difficulty()
    """

    def __init__(
        self,
        config: NodeConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            config: Node URL, credentials and timeout
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "BitcoindAsyncClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                auth=httpx.BasicAuth(
                    self.config.username, self.config.password.get_secret_value()
                ),
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            )
            logger.debug(
                f"BitcoindAsyncClient initialized: {self.config.url}, "
                f"timeout={self.config.timeout_seconds}s"
            )
        return self._client

    async def close(self) -> None:
        """Close the pooled httpx client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # =========================================================================
    # JSON-RPC transport
    # =========================================================================

    async def call(self, method: str, params: Optional[dict] = None) -> Any:
        """Issue one JSON-RPC call and return its ``result``.

        Args:
            method: RPC method name
            params: Named parameters; omitted keys use the node's defaults

        Raises:
            UpstreamUnavailable: Timeout, transport error, auth failure,
                malformed reply or RPC error
            InvalidArgument: RPC error attributed to the arguments
        """
        payload = {
            "jsonrpc": "1.0",
            "id": f"chainstats_{method}",
            "method": method,
            "params": params or [],
        }
        client = await self._get_client()

        start = time.perf_counter()
        try:
            response = await client.post(self.config.url, json=payload)
        except httpx.TimeoutException as e:
            logger.warning(f"RPC {method} timed out after {self.config.timeout_seconds}s")
            raise UpstreamTimeout(
                f"{method} timed out after {self.config.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"RPC {method} transport error: {type(e).__name__}")
            raise UpstreamUnavailable(
                f"{method} failed: node unreachable ({type(e).__name__})"
            ) from e
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.debug(f"RPC {method} -> HTTP {response.status_code} in {latency_ms}ms")

        if response.status_code in (401, 403):
            raise UpstreamUnavailable(
                f"{method} failed: node rejected RPC credentials (HTTP {response.status_code})"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(
                f"{method} failed: non-JSON reply (HTTP {response.status_code})"
            ) from e
        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"{method} failed: unexpected reply shape")

        error = data.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            if code in CALLER_ERROR_CODES:
                raise InvalidArgument(f"{method}: {message}", rpc_code=code)
            logger.warning(f"RPC {method} error {code}: {message}")
            raise UpstreamUnavailable(f"{method}: {message}", rpc_code=code)

        if response.status_code != 200:
            raise UpstreamUnavailable(f"{method} failed: HTTP {response.status_code}")

        return data.get("result")

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_block_count(self) -> int:
        return int(await self.call("getblockcount"))

    async def get_block_stats(
        self, target: BlockTarget, stats: Optional[Sequence[str]] = None
    ) -> BlockStats:
        """getblockstats for a height or hash.

        Returns AllStats unless a stats filter was sent or the node left out
        standard fields, in which case SelectiveStats is returned.
        """
        params: dict = {"hash_or_height": target.to_rpc_param()}
        if stats:
            params["stats"] = list(stats)
        result = await self.call("getblockstats", params)
        if not isinstance(result, dict):
            raise UpstreamUnavailable("getblockstats failed: unexpected result shape")
        return parse_block_stats(result, selective=bool(stats))

    async def get_chain_tx_stats(
        self, n_blocks: Optional[int] = None, blockhash: Optional[str] = None
    ) -> ChainTxStats:
        params = {}
        if n_blocks is not None:
            params["nblocks"] = n_blocks
        if blockhash is not None:
            params["blockhash"] = blockhash
        result = await self.call("getchaintxstats", params)
        return _validate(ChainTxStats, result, "getchaintxstats")

    async def get_difficulty(self) -> float:
        return float(await self.call("getdifficulty"))

    async def get_network_hash_ps(
        self, n_blocks: Optional[int] = None, height: Optional[int] = None
    ) -> float:
        params = {}
        if n_blocks is not None:
            params["nblocks"] = n_blocks
        if height is not None:
            params["height"] = height
        return float(await self.call("getnetworkhashps", params))

    async def get_block_hash(self, height: int) -> str:
        return str(await self.call("getblockhash", {"height": height}))

    async def get_block(
        self, blockhash: str, verbosity: Optional[BlockVerbosity] = None
    ) -> Union[str, dict]:
        """getblock; hex string at verbosity 0, structured block otherwise."""
        params: dict = {"blockhash": blockhash}
        if verbosity is not None:
            params["verbosity"] = int(verbosity)
        return await self.call("getblock", params)

    async def get_tx_out_set_info(self, hash_type: Optional[str] = None) -> TxOutSetInfo:
        params = {}
        if hash_type is not None:
            params["hash_type"] = hash_type
        result = await self.call("gettxoutsetinfo", params)
        return _validate(TxOutSetInfo, result, "gettxoutsetinfo")

    async def ping(self) -> float:
        """Round-trip a getblockcount call and return its latency in ms."""
        start = time.perf_counter()
        await self.get_block_count()
        return round((time.perf_counter() - start) * 1000, 2)


def _validate(model, result, method: str):
    try:
        return model.model_validate(result)
    except ValueError as e:
        raise UpstreamUnavailable(f"{method} failed: malformed result ({e})") from e
