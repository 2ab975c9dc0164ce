"""Dashboard aggregation.

Builds one DashboardSnapshot from a fixed set of node queries:

    1. getblockcount                       -> block_count
    2. getblockstats(block_count)          -> time_of_last_block, subsidy
    3. getchaintxstats (node default)      -> total tx count, tps window
    4. getdifficulty                       -> difficulty
    5. getblockstats(last adjustment)      -> epoch start time
    6. getnetworkhashps(2016)              -> hash rate estimate

Queries 3, 4 and 6 (plus the market data snapshot) start right away, next to
query 1. Queries 2 and 5 need the height and start once query 1 returns. Any
failure cancels the queries still in flight and propagates: there are no
partial dashboards.
"""

import asyncio
import logging

from api.models.dashboard_models import DashboardSnapshot
from chainstats.errors import InvalidArgument, UpstreamDataMissing, UpstreamUnavailable
from chainstats.integrations.market_data import MarketDataProvider
from chainstats.metrics.difficulty_epoch import (
    BLOCKS_PER_DIFFICULTY_PERIOD,
    calculate_block_interval,
    calculate_epoch_progress,
    calculate_tps,
    estimate_seconds_until_retarget,
)
from chainstats.models.node_args import BlockTarget

logger = logging.getLogger(__name__)


async def gather_or_cancel(*aws):
    """asyncio.gather that cancels the remaining awaitables on first failure."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


def _cancel_pending(tasks) -> None:
    """Cancel tasks still running and mark failures of finished ones as retrieved."""
    for task in tasks:
        if not task.done():
            task.cancel()
        elif not task.cancelled():
            task.exception()


async def build_dashboard_snapshot(
    node, market_data: MarketDataProvider
) -> DashboardSnapshot:
    """Query the node and derive the dashboard figures.

    Args:
        node: Node data provider (BitcoindAsyncClient or compatible)
        market_data: Source of price and total supply

    Returns:
        DashboardSnapshot; every "current block" figure comes from the same
        block_count

    Raises:
        UpstreamUnavailable: Any node query failed, including a node rejecting
            the derived arguments (e.g. a tip that moved back after a reorg)
        UpstreamDataMissing: A needed field is absent from a reply
    """
    independent = [
        asyncio.ensure_future(aw)
        for aw in (
            node.get_chain_tx_stats(),
            node.get_difficulty(),
            node.get_network_hash_ps(n_blocks=BLOCKS_PER_DIFFICULTY_PERIOD),
            market_data.get_snapshot(),
        )
    ]
    try:
        block_count = await node.get_block_count()
        progress = calculate_epoch_progress(block_count)

        current_stats, adjustment_stats = await gather_or_cancel(
            node.get_block_stats(BlockTarget.from_height(block_count)),
            node.get_block_stats(
                BlockTarget.from_height(progress.height_of_last_adjustment)
            ),
        )
        chain_tx_stats, difficulty, hash_rate, market = await gather_or_cancel(
            *independent
        )
    except InvalidArgument as e:
        _cancel_pending(independent)
        # Every argument here is derived, never taken from the request
        raise UpstreamUnavailable(
            f"Node rejected dashboard query: {e.message}", rpc_code=e.rpc_code
        ) from e
    except BaseException:
        _cancel_pending(independent)
        raise

    time_of_last_block = current_stats.require_stat("time")
    subsidy = current_stats.require_stat("subsidy")
    time_of_last_adjustment_block = adjustment_stats.require_stat("time")

    if chain_tx_stats.txcount is None:
        raise UpstreamDataMissing("txcount", source="getchaintxstats")
    tps = calculate_tps(chain_tx_stats.window_tx_count, chain_tx_stats.window_interval)

    interval = calculate_block_interval(
        progress, time_of_last_block, time_of_last_adjustment_block
    )

    logger.info(
        f"Dashboard built at height {block_count} "
        f"(epoch {progress.current_difficulty_epoch}, "
        f"{progress.whole_blocks_since_last_retarget} blocks into epoch)"
    )

    return DashboardSnapshot(
        price=market.price,
        block_count=block_count,
        total_money_supply=market.total_money_supply,
        time_of_last_block=time_of_last_block,
        total_transactions_count=chain_tx_stats.txcount,
        tps_30days=tps,
        difficulty=difficulty,
        current_difficulty_epoch=progress.current_difficulty_epoch,
        blocks_until_retarget=progress.blocks_until_retarget,
        average_seconds_per_block_for_current_epoch=interval.average_seconds_per_block,
        estimated_seconds_until_retarget=estimate_seconds_until_retarget(progress),
        estimated_hash_rate_for_last_2016_blocks=hash_rate,
        subsidy_in_sats_at_current_block_height=subsidy,
    )
