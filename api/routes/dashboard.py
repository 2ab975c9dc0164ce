"""
Dashboard route.

- GET /dashboard - DashboardSnapshot built fresh for every request
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_market_data, get_node
from api.models.dashboard_models import DashboardSnapshot
from chainstats.integrations.market_data import MarketDataProvider
from chainstats.metrics.dashboard import build_dashboard_snapshot
from chainstats.utils.bitcoind_async import BitcoindAsyncClient

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardSnapshot)
async def get_dashboard(
    node: Annotated[BitcoindAsyncClient, Depends(get_node)],
    market_data: Annotated[MarketDataProvider, Depends(get_market_data)],
) -> DashboardSnapshot:
    """Chain overview: height, epoch progress, difficulty, hash rate, throughput."""
    return await build_dashboard_snapshot(node, market_data)
