"""
Pytest configuration and shared fixtures

Add global fixtures here that are used across multiple test modules.
"""

import pytest
from fastapi.testclient import TestClient

pytest_plugins = ["tests.fixtures.node_fixtures"]


@pytest.fixture
def node_env(monkeypatch):
    """Minimal BITCOIND_* environment so the app can start."""
    monkeypatch.setenv("BITCOIND_URL", "http://127.0.0.1:8332")
    monkeypatch.setenv("BITCOIND_USERNAME", "rpcuser")
    monkeypatch.setenv("BITCOIND_PASSWORD", "rpcpassword")
    monkeypatch.delenv("DASHBOARD_SUPPLY_SOURCE", raising=False)


@pytest.fixture
def api_client(node_env, mock_node, static_market_data):
    """
    FastAPI test client with the node and market data replaced by fixtures.

    Yields:
        TestClient: Configured FastAPI test client
    """
    from api.dependencies import get_market_data, get_node
    from api.main import app

    app.dependency_overrides[get_node] = lambda: mock_node
    app.dependency_overrides[get_market_data] = lambda: static_market_data
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
