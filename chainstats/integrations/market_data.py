"""
Market data providers for the dashboard.

The node knows neither the fiat price nor (cheaply) the circulating supply,
so the dashboard asks an injected provider for both. Providers expose one
async query, ``get_snapshot()``.

- StaticMarketData: configured constants
- UtxoSetMarketData: configured price, supply from gettxoutsetinfo
"""

import logging
from typing import Protocol

from chainstats.config import MarketDataConfig, SupplySource
from chainstats.models.metrics_models import MarketSnapshotData

logger = logging.getLogger(__name__)


class MarketDataProvider(Protocol):
    async def get_snapshot(self) -> MarketSnapshotData: ...


class StaticMarketData:
    """Fixed price and supply figures."""

    def __init__(self, price: float, total_money_supply: float):
        self._snapshot = MarketSnapshotData(
            price=price, total_money_supply=total_money_supply, source="static"
        )

    async def get_snapshot(self) -> MarketSnapshotData:
        return self._snapshot


class UtxoSetMarketData:
    """
    Configured price; supply read from the node's UTXO set summary.

    gettxoutsetinfo walks the whole UTXO set and can take a long time on
    mainnet, so NodeConfig.timeout_seconds has to allow for it.
    """

    def __init__(self, node, price: float):
        self.node = node
        self.price = price

    async def get_snapshot(self) -> MarketSnapshotData:
        info = await self.node.get_tx_out_set_info()
        logger.debug(f"UTXO set supply at height {info.height}: {info.total_amount}")
        return MarketSnapshotData(
            price=self.price, total_money_supply=info.total_amount, source="utxoset"
        )


def create_market_data_provider(config: MarketDataConfig, node) -> MarketDataProvider:
    """Build the provider selected by ``config.supply_source``."""
    if config.supply_source == SupplySource.UTXOSET:
        return UtxoSetMarketData(node, price=config.price)
    return StaticMarketData(config.price, config.total_money_supply)
