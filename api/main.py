#!/usr/bin/env python3
"""
Bitcoin Dashboard FastAPI Backend

Read-only REST API in front of a bitcoind node:
- /api/v1/dashboard: derived chain overview (epoch progress, hash rate, tps)
- /api/v1/get*: single-query passthrough endpoints
- /health: node connectivity and process health

Run:
    python -m api.main [PORT]
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime

import psutil
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.dependencies import get_node
from api.errors import register_exception_handlers
from api.logging_config import CorrelationIDMiddleware, configure_structured_logging
from api.models.dashboard_models import HealthStatus, ServiceCheck
from api.routes.dashboard import router as dashboard_router
from api.routes.node import router as node_router
from chainstats.config import MarketDataConfig, NodeConfig, ServerConfig, load_environment
from chainstats.errors import UpstreamTimeout, UpstreamUnavailable
from chainstats.integrations.market_data import create_market_data_provider
from chainstats.utils.bitcoind_async import BitcoindAsyncClient

API_PREFIX = "/api/v1"

# =============================================================================
# Configuration Management
# =============================================================================

load_environment()
configure_structured_logging(ServerConfig.from_env().log_level)

# Track startup time for /health endpoint
STARTUP_TIME = datetime.now()


# =============================================================================
# Lifespan: node client per process
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared node client at startup, close it at shutdown.

    Raises EnvironmentError (and aborts startup) when node settings are missing.
    """
    node_config = NodeConfig.from_env()
    market_config = MarketDataConfig.from_env()

    node = BitcoindAsyncClient(node_config)
    app.state.node = node
    app.state.market_data = create_market_data_provider(market_config, node)
    logging.info(
        f"Node client ready: url={node_config.url}, "
        f"timeout={node_config.timeout_seconds}s, "
        f"supply_source={market_config.supply_source.value}"
    )
    try:
        yield
    finally:
        await node.close()


# =============================================================================
# App Initialization
# =============================================================================


def create_app() -> FastAPI:
    app = FastAPI(
        title="Bitcoin Dashboard API",
        description="Read-only REST API over bitcoind RPC with a derived dashboard",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Cross-origin reads are allowed from anywhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIDMiddleware)

    register_exception_handlers(app)

    app.include_router(dashboard_router, prefix=API_PREFIX)
    app.include_router(node_router, prefix=API_PREFIX)

    app.add_api_route("/", root, methods=["GET"], response_class=PlainTextResponse)
    app.add_api_route("/health", health, methods=["GET"], response_model=HealthStatus)
    return app


# =============================================================================
# GET / and GET /health
# =============================================================================


async def root() -> str:
    """Liveness text."""
    return "Welcome!"


async def check_node_connectivity(node) -> ServiceCheck:
    """
    Check bitcoind RPC connectivity.

    Returns:
        ServiceCheck: Status, latency, and error details
    """
    try:
        latency_ms = await node.ping()
        return ServiceCheck(status="ok", latency_ms=latency_ms)
    except UpstreamTimeout as e:
        return ServiceCheck(status="timeout", error=e.message)
    except UpstreamUnavailable as e:
        return ServiceCheck(status="error", error=e.message)


async def health(node: BitcoindAsyncClient = Depends(get_node)) -> HealthStatus:
    """
    Health check with node connectivity, uptime and memory usage.

    Always answers 200; the body's status says healthy or unhealthy.
    """
    node_check = await check_node_connectivity(node)
    memory_mb = round(psutil.Process().memory_info().rss / (1024 * 1024), 2)
    now = datetime.now()

    return HealthStatus(
        status="healthy" if node_check.status == "ok" else "unhealthy",
        timestamp=now,
        uptime_seconds=round((now - STARTUP_TIME).total_seconds(), 2),
        started_at=STARTUP_TIME.isoformat(),
        checks={"bitcoind": node_check},
        memory_mb=memory_mb,
    )


app = create_app()


# =============================================================================
# Run with uvicorn
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    server_config = ServerConfig.from_env(sys.argv[1:])
    # Fail fast before binding the port
    NodeConfig.from_env()

    logging.info(f"Starting dashboard API on {server_config.host}:{server_config.port}")
    uvicorn.run(
        app,
        host=server_config.host,
        port=server_config.port,
        log_level=server_config.log_level.lower(),
    )
