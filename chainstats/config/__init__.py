"""
Dashboard API centralized configuration package.

Exports:
    NodeConfig: bitcoind JSON-RPC connection settings
    ServerConfig: HTTP listen address and log level
    MarketDataConfig: price and supply figures for the dashboard
    load_environment: Load the repository .env file
"""

from chainstats.config.settings import (
    MarketDataConfig,
    NodeConfig,
    ServerConfig,
    SupplySource,
    load_environment,
)

__all__ = [
    "MarketDataConfig",
    "NodeConfig",
    "ServerConfig",
    "SupplySource",
    "load_environment",
]
