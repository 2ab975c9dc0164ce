"""
Centralized configuration for the dashboard API.

All settings come from environment variables (a .env file at the repository
root is loaded first by ``load_environment``). Node credentials are mandatory:
startup fails fast when any of them is missing.

Usage:
    from chainstats.config import NodeConfig, ServerConfig

    node_config = NodeConfig.from_env()
    server_config = ServerConfig.from_env(sys.argv[1:])
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, ValidationError

logger = logging.getLogger(__name__)

ENV_PATH = Path(__file__).resolve().parent.parent.parent / ".env"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3030

# Hardcoded figures of the first dashboard release, kept as defaults until a
# price feed is wired in.
DEFAULT_PRICE = 22122.0
DEFAULT_TOTAL_MONEY_SUPPLY = 70000.1


def load_environment(env_path: Path = ENV_PATH) -> bool:
    """Load .env into os.environ (override=True). Returns True if a file was found."""
    if env_path.exists():
        load_dotenv(env_path, override=True)
        logger.info(f"Config loaded from .env file at {env_path} (override=True)")
        return True
    logger.info("Config loaded from environment variables (no .env file found)")
    return False


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise EnvironmentError(f"{name} env variable not set")
    return value


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise EnvironmentError(f"{name} must be a {cast.__name__}, got {raw!r}")


class NodeConfig(BaseModel):
    """Connection settings for the bitcoind JSON-RPC endpoint."""

    url: str = Field(..., description="JSON-RPC endpoint, e.g. http://127.0.0.1:8332")
    username: str = Field(..., description="RPC user")
    password: SecretStr = Field(..., description="RPC password")
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0.0,
        le=600.0,
        description="Upper bound for every RPC round trip",
    )

    @classmethod
    def from_env(cls) -> "NodeConfig":
        """Create config from BITCOIND_* environment variables.

        Raises:
            EnvironmentError: If a required variable is missing or invalid
        """
        try:
            return cls(
                url=_require_env("BITCOIND_URL"),
                username=_require_env("BITCOIND_USERNAME"),
                password=SecretStr(_require_env("BITCOIND_PASSWORD")),
                timeout_seconds=_env_number(
                    "BITCOIND_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float
                ),
            )
        except ValidationError as e:
            raise EnvironmentError(f"Invalid node configuration: {e}") from e


class ServerConfig(BaseModel):
    """Listening address of the HTTP server."""

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, argv: Optional[Sequence[str]] = None) -> "ServerConfig":
        """Create config from environment; the first CLI argument overrides the port."""
        port = _env_number("DASHBOARD_PORT", DEFAULT_PORT, int)
        if argv:
            try:
                port = int(argv[0])
            except ValueError:
                raise EnvironmentError(f"Port argument must be an integer, got {argv[0]!r}")

        try:
            return cls(
                host=os.getenv("DASHBOARD_HOST", DEFAULT_HOST),
                port=port,
                log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            )
        except ValidationError as e:
            raise EnvironmentError(f"Invalid server configuration: {e}") from e


class SupplySource(str, Enum):
    """Where the dashboard's total money supply comes from."""

    STATIC = "static"
    UTXOSET = "utxoset"


class MarketDataConfig(BaseModel):
    """Figures the node cannot provide on its own."""

    price: float = Field(default=DEFAULT_PRICE, ge=0.0)
    total_money_supply: float = Field(default=DEFAULT_TOTAL_MONEY_SUPPLY, ge=0.0)
    supply_source: SupplySource = SupplySource.STATIC

    @classmethod
    def from_env(cls) -> "MarketDataConfig":
        source = os.getenv("DASHBOARD_SUPPLY_SOURCE", SupplySource.STATIC.value).lower()
        try:
            return cls(
                price=_env_number("DASHBOARD_PRICE", DEFAULT_PRICE, float),
                total_money_supply=_env_number(
                    "DASHBOARD_TOTAL_MONEY_SUPPLY", DEFAULT_TOTAL_MONEY_SUPPLY, float
                ),
                supply_source=SupplySource(source),
            )
        except (ValidationError, ValueError) as e:
            raise EnvironmentError(f"Invalid market data configuration: {e}") from e
