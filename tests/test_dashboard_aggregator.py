"""Tests for dashboard aggregation.

Covers the query plan, derived figures, a single shared block_count,
missing-field handling, failure propagation and concurrent fan-out.
"""

import asyncio
import gc
import warnings

import pytest

from api.models.dashboard_models import DashboardSnapshot
from api.models.node_models import SelectiveStats
from chainstats.errors import InvalidArgument, UpstreamDataMissing, UpstreamUnavailable
from chainstats.integrations.market_data import StaticMarketData
from chainstats.metrics.dashboard import build_dashboard_snapshot, gather_or_cancel
from chainstats.models.node_args import BlockTarget
from tests.fixtures.node_fixtures import (
    ADJUSTMENT_BLOCK_TIME,
    DIFFICULTY,
    HASH_RATE,
    LAST_ADJUSTMENT_HEIGHT,
    SUBSIDY_SATS,
    TIP_BLOCK_TIME,
    TIP_HEIGHT,
    configure_node,
    make_all_stats,
    make_chain_tx_stats,
)


class TestDashboardValues:
    """Derived figures for a tip at height 700000."""

    @pytest.mark.asyncio
    async def test_returns_snapshot(self, mock_node, static_market_data):
        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert isinstance(snapshot, DashboardSnapshot)

    @pytest.mark.asyncio
    async def test_block_figures(self, mock_node, static_market_data):
        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert snapshot.block_count == TIP_HEIGHT
        assert snapshot.time_of_last_block == TIP_BLOCK_TIME
        assert snapshot.subsidy_in_sats_at_current_block_height == SUBSIDY_SATS
        assert snapshot.difficulty == DIFFICULTY
        assert snapshot.estimated_hash_rate_for_last_2016_blocks == HASH_RATE

    @pytest.mark.asyncio
    async def test_epoch_figures(self, mock_node, static_market_data):
        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert snapshot.current_difficulty_epoch == 348
        assert snapshot.blocks_until_retarget == pytest.approx(1568.0)
        assert snapshot.estimated_seconds_until_retarget == pytest.approx(1568 * 600.0)
        assert snapshot.average_seconds_per_block_for_current_epoch == 600

    @pytest.mark.asyncio
    async def test_transaction_figures(self, mock_node, static_market_data):
        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert snapshot.total_transactions_count == 663_899_987
        assert snapshot.tps_30days == pytest.approx(1.929, abs=1e-3)

    @pytest.mark.asyncio
    async def test_market_figures_come_from_provider(self, mock_node):
        market_data = StaticMarketData(price=65000.0, total_money_supply=19_700_000.0)

        snapshot = await build_dashboard_snapshot(mock_node, market_data)

        assert snapshot.price == 65000.0
        assert snapshot.total_money_supply == 19_700_000.0


class TestQueryPlan:
    """Which node queries are issued."""

    @pytest.mark.asyncio
    async def test_block_count_fetched_once(self, mock_node, static_market_data):
        """Current-block figures all derive from a single getblockcount."""
        await build_dashboard_snapshot(mock_node, static_market_data)

        mock_node.get_block_count.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stats_for_tip_and_last_adjustment(self, mock_node, static_market_data):
        await build_dashboard_snapshot(mock_node, static_market_data)

        targets = {call.args[0] for call in mock_node.get_block_stats.await_args_list}
        assert targets == {
            BlockTarget.from_height(TIP_HEIGHT),
            BlockTarget.from_height(LAST_ADJUSTMENT_HEIGHT),
        }

    @pytest.mark.asyncio
    async def test_hash_rate_over_2016_blocks(self, mock_node, static_market_data):
        await build_dashboard_snapshot(mock_node, static_market_data)

        mock_node.get_network_hash_ps.assert_awaited_once_with(n_blocks=2016)

    @pytest.mark.asyncio
    async def test_chain_tx_stats_uses_node_default_window(
        self, mock_node, static_market_data
    ):
        await build_dashboard_snapshot(mock_node, static_market_data)

        mock_node.get_chain_tx_stats.assert_awaited_once_with()


class TestEpochBoundary:
    @pytest.mark.asyncio
    async def test_average_is_null_at_epoch_start(self, mock_node, static_market_data):
        """First block of an epoch: no blocks mined since retarget, no division."""
        configure_node(
            mock_node,
            LAST_ADJUSTMENT_HEIGHT,
            {LAST_ADJUSTMENT_HEIGHT: make_all_stats(LAST_ADJUSTMENT_HEIGHT, ADJUSTMENT_BLOCK_TIME)},
        )

        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert snapshot.average_seconds_per_block_for_current_epoch is None
        assert snapshot.blocks_until_retarget == 2016
        assert snapshot.current_difficulty_epoch == 348

    @pytest.mark.asyncio
    async def test_genesis_height(self, mock_node, static_market_data):
        configure_node(mock_node, 0, {0: make_all_stats(0, 1231006505, 5000000000)})

        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert snapshot.current_difficulty_epoch == 1
        assert snapshot.average_seconds_per_block_for_current_epoch is None


class TestMissingData:
    """SelectiveStats replies must carry the fields the dashboard reads."""

    @pytest.mark.asyncio
    async def test_selective_stats_with_fields_is_accepted(self, mock_node, static_market_data):
        configure_node(
            mock_node,
            TIP_HEIGHT,
            {
                TIP_HEIGHT: SelectiveStats(time=TIP_BLOCK_TIME, subsidy=SUBSIDY_SATS),
                LAST_ADJUSTMENT_HEIGHT: SelectiveStats(time=ADJUSTMENT_BLOCK_TIME),
            },
        )

        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert snapshot.time_of_last_block == TIP_BLOCK_TIME

    @pytest.mark.asyncio
    async def test_missing_time_raises(
        self, mock_node, static_market_data, selective_stats_without_time
    ):
        configure_node(
            mock_node,
            TIP_HEIGHT,
            {
                TIP_HEIGHT: selective_stats_without_time,
                LAST_ADJUSTMENT_HEIGHT: make_all_stats(LAST_ADJUSTMENT_HEIGHT, ADJUSTMENT_BLOCK_TIME),
            },
        )

        with pytest.raises(UpstreamDataMissing) as exc_info:
            await build_dashboard_snapshot(mock_node, static_market_data)

        assert exc_info.value.field == "time"

    @pytest.mark.asyncio
    async def test_missing_subsidy_raises(self, mock_node, static_market_data):
        configure_node(
            mock_node,
            TIP_HEIGHT,
            {
                TIP_HEIGHT: SelectiveStats(time=TIP_BLOCK_TIME),
                LAST_ADJUSTMENT_HEIGHT: make_all_stats(LAST_ADJUSTMENT_HEIGHT, ADJUSTMENT_BLOCK_TIME),
            },
        )

        with pytest.raises(UpstreamDataMissing) as exc_info:
            await build_dashboard_snapshot(mock_node, static_market_data)

        assert exc_info.value.field == "subsidy"

    @pytest.mark.asyncio
    async def test_missing_tx_window_raises(self, mock_node, static_market_data):
        mock_node.get_chain_tx_stats.return_value = make_chain_tx_stats(
            window_tx_count=None, window_interval=None
        )

        with pytest.raises(UpstreamDataMissing):
            await build_dashboard_snapshot(mock_node, static_market_data)

    @pytest.mark.asyncio
    async def test_missing_txcount_raises(self, mock_node, static_market_data):
        mock_node.get_chain_tx_stats.return_value = make_chain_tx_stats(txcount=None)

        with pytest.raises(UpstreamDataMissing) as exc_info:
            await build_dashboard_snapshot(mock_node, static_market_data)

        assert exc_info.value.field == "txcount"


class TestFailurePropagation:
    """A single failed query fails the whole dashboard."""

    @pytest.mark.asyncio
    async def test_block_count_failure(self, mock_node, static_market_data):
        mock_node.get_block_count.side_effect = UpstreamUnavailable("getblockcount timed out")

        with pytest.raises(UpstreamUnavailable):
            await build_dashboard_snapshot(mock_node, static_market_data)

    @pytest.mark.asyncio
    async def test_difficulty_failure(self, mock_node, static_market_data):
        mock_node.get_difficulty.side_effect = UpstreamUnavailable("getdifficulty failed")

        with pytest.raises(UpstreamUnavailable):
            await build_dashboard_snapshot(mock_node, static_market_data)

    @pytest.mark.asyncio
    async def test_block_stats_failure(self, mock_node, static_market_data):
        mock_node.get_block_stats.side_effect = UpstreamUnavailable("getblockstats failed")

        with pytest.raises(UpstreamUnavailable):
            await build_dashboard_snapshot(mock_node, static_market_data)

    @pytest.mark.asyncio
    async def test_failure_cancels_inflight_queries(self, mock_node, static_market_data):
        """Slow sibling queries are cancelled once one query fails."""
        cancelled = asyncio.Event()

        async def never_answers(**kwargs):
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def fails_after_round_trip():
            await asyncio.sleep(0.01)
            raise UpstreamUnavailable("node down")

        mock_node.get_network_hash_ps.side_effect = never_answers
        mock_node.get_block_count.side_effect = fails_after_round_trip

        with pytest.raises(UpstreamUnavailable):
            await build_dashboard_snapshot(mock_node, static_market_data)

        await asyncio.wait_for(cancelled.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_node_rejection_reported_as_upstream_failure(
        self, mock_node, static_market_data
    ):
        """Dashboard arguments are derived, so a node rejection is not a 400."""
        mock_node.get_block_stats.side_effect = InvalidArgument(
            "getblockstats: Target block height 700000 after current tip 699999",
            rpc_code=-8,
        )

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await build_dashboard_snapshot(mock_node, static_market_data)

        assert not isinstance(exc_info.value, InvalidArgument)
        assert exc_info.value.rpc_code == -8
        assert isinstance(exc_info.value.__cause__, InvalidArgument)

    @pytest.mark.asyncio
    async def test_immediate_failure_leaves_no_unawaited_queries(
        self, mock_node, static_market_data
    ):
        """Queries cancelled before they start are closed cleanly."""
        mock_node.get_block_count.side_effect = UpstreamUnavailable("node down")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            with pytest.raises(UpstreamUnavailable):
                await build_dashboard_snapshot(mock_node, static_market_data)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            gc.collect()

        assert not [w for w in caught if "was never awaited" in str(w.message)]


class TestConcurrency:
    """Independent queries run alongside getblockcount."""

    @pytest.mark.asyncio
    async def test_independent_queries_overlap_block_count(self, mock_node, static_market_data):
        difficulty_started = asyncio.Event()

        async def get_difficulty():
            difficulty_started.set()
            return DIFFICULTY

        async def get_block_count():
            # Would time out if getdifficulty only started after getblockcount
            await asyncio.wait_for(difficulty_started.wait(), timeout=1.0)
            return TIP_HEIGHT

        mock_node.get_difficulty.side_effect = get_difficulty
        mock_node.get_block_count.side_effect = get_block_count

        snapshot = await build_dashboard_snapshot(mock_node, static_market_data)

        assert snapshot.difficulty == DIFFICULTY

    @pytest.mark.asyncio
    async def test_block_stats_queries_overlap(self, mock_node, static_market_data):
        """Stats for the tip and the last adjustment are fetched together."""
        in_flight = 0
        peak = 0
        stats = {
            TIP_HEIGHT: make_all_stats(TIP_HEIGHT, TIP_BLOCK_TIME),
            LAST_ADJUSTMENT_HEIGHT: make_all_stats(LAST_ADJUSTMENT_HEIGHT, ADJUSTMENT_BLOCK_TIME),
        }

        async def get_block_stats(target, stats_filter=None):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return stats[target.height]

        mock_node.get_block_stats.side_effect = get_block_stats

        await build_dashboard_snapshot(mock_node, static_market_data)

        assert peak == 2


class TestGatherOrCancel:
    @pytest.mark.asyncio
    async def test_returns_results_in_order(self):
        async def value(v):
            return v

        assert await gather_or_cancel(value(1), value(2), value(3)) == [1, 2, 3]
