"""
Pydantic models for bitcoind RPC replies.

Models for:
- getblockstats: AllStats (every standard field) / SelectiveStats (filtered)
- getchaintxstats: ChainTxStats
- gettxoutsetinfo: TxOutSetInfo

Unknown fields are kept (extra="allow") so passthrough endpoints return what
the node sent, including fields added by newer node versions.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chainstats.errors import UpstreamDataMissing, UpstreamUnavailable


# =============================================================================
# getblockstats
# =============================================================================


class _BlockStatsAccess(BaseModel):
    """Field access shared by both getblockstats reply shapes."""

    model_config = ConfigDict(extra="allow")

    def get_stat(self, name: str) -> Optional[Any]:
        """Return a field, or None when the node did not report it."""
        return getattr(self, name, None)

    def require_stat(self, name: str) -> Any:
        """Return a field, raising UpstreamDataMissing when it is absent."""
        value = self.get_stat(name)
        if value is None:
            raise UpstreamDataMissing(name)
        return value


class AllStats(_BlockStatsAccess):
    """getblockstats reply with every standard field populated."""

    avgfee: int
    avgfeerate: int
    avgtxsize: int
    blockhash: str
    feerate_percentiles: list[int]
    height: int
    ins: int
    maxfee: int
    maxfeerate: int
    maxtxsize: int
    medianfee: int
    mediantime: int
    mediantxsize: int
    minfee: int
    minfeerate: int
    mintxsize: int
    outs: int
    subsidy: int = Field(..., description="Block subsidy in satoshis")
    swtotal_size: int
    swtotal_weight: int
    swtxs: int
    time: int = Field(..., description="Block timestamp (unix seconds)")
    total_out: int
    total_size: int
    total_weight: int
    totalfee: int
    txs: int
    utxo_increase: int
    utxo_size_inc: int
    # Reported by newer nodes only
    utxo_increase_actual: Optional[int] = None
    utxo_size_inc_actual: Optional[int] = None


class SelectiveStats(_BlockStatsAccess):
    """getblockstats reply where only the requested fields are present."""

    avgfee: Optional[int] = None
    avgfeerate: Optional[int] = None
    avgtxsize: Optional[int] = None
    blockhash: Optional[str] = None
    feerate_percentiles: Optional[list[int]] = None
    height: Optional[int] = None
    ins: Optional[int] = None
    maxfee: Optional[int] = None
    maxfeerate: Optional[int] = None
    maxtxsize: Optional[int] = None
    medianfee: Optional[int] = None
    mediantime: Optional[int] = None
    mediantxsize: Optional[int] = None
    minfee: Optional[int] = None
    minfeerate: Optional[int] = None
    mintxsize: Optional[int] = None
    outs: Optional[int] = None
    subsidy: Optional[int] = None
    swtotal_size: Optional[int] = None
    swtotal_weight: Optional[int] = None
    swtxs: Optional[int] = None
    time: Optional[int] = None
    total_out: Optional[int] = None
    total_size: Optional[int] = None
    total_weight: Optional[int] = None
    totalfee: Optional[int] = None
    txs: Optional[int] = None
    utxo_increase: Optional[int] = None
    utxo_size_inc: Optional[int] = None
    utxo_increase_actual: Optional[int] = None
    utxo_size_inc_actual: Optional[int] = None


BlockStats = Union[AllStats, SelectiveStats]


def parse_block_stats(data: dict, selective: bool = False) -> BlockStats:
    """Build the matching BlockStats shape from a getblockstats result.

    Args:
        data: Raw ``result`` object of getblockstats
        selective: True when a stats filter was sent with the request

    Returns:
        AllStats if every standard field is present and no filter was used,
        SelectiveStats otherwise
    """
    if not selective:
        try:
            return AllStats.model_validate(data)
        except ValidationError:
            pass
    try:
        return SelectiveStats.model_validate(data)
    except ValidationError as e:
        raise UpstreamUnavailable(f"Malformed getblockstats response: {e}") from e


# =============================================================================
# getchaintxstats
# =============================================================================


class ChainTxStats(BaseModel):
    """getchaintxstats reply."""

    model_config = ConfigDict(extra="allow")

    time: int
    txcount: Optional[int] = Field(None, description="Transactions in the chain up to the final block")
    window_final_block_hash: str
    window_final_block_height: Optional[int] = None
    window_block_count: int
    # Omitted by the node when window_block_count is 0
    window_tx_count: Optional[int] = None
    window_interval: Optional[int] = Field(None, description="Elapsed seconds in the window")
    txrate: Optional[float] = None


# =============================================================================
# gettxoutsetinfo
# =============================================================================


class TxOutSetInfo(BaseModel):
    """gettxoutsetinfo reply."""

    model_config = ConfigDict(extra="allow")

    height: int
    bestblock: str
    txouts: int
    bogosize: int
    total_amount: float = Field(..., description="Total BTC in the UTXO set")
    transactions: Optional[int] = None
    disk_size: Optional[int] = None
    hash_serialized_2: Optional[str] = None
    hash_serialized_3: Optional[str] = None
    muhash: Optional[str] = None
