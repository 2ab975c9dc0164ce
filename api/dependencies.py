"""
FastAPI dependencies resolving the collaborators stored on application state.

Tests replace them with ``app.dependency_overrides``.
"""

from fastapi import Request

from chainstats.integrations.market_data import MarketDataProvider
from chainstats.utils.bitcoind_async import BitcoindAsyncClient


def get_node(request: Request) -> BitcoindAsyncClient:
    return request.app.state.node


def get_market_data(request: Request) -> MarketDataProvider:
    return request.app.state.market_data
