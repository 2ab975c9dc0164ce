"""
Pydantic models for the dashboard API.

Models for:
- DashboardSnapshot: /api/v1/dashboard response
- ErrorResponse: body of every 4xx/5xx answer
- ServiceCheck / HealthStatus: /health response
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class DashboardSnapshot(BaseModel):
    """Derived chain overview built from one set of node queries."""

    price: float = Field(..., description="Fiat price of one coin (external)")
    block_count: int = Field(..., ge=0, description="Current chain height")
    total_money_supply: float = Field(..., description="Coins in circulation (external)")
    time_of_last_block: int = Field(..., description="Timestamp of the block at block_count")
    total_transactions_count: int = Field(..., description="Transactions in the chain to date")
    tps_30days: float = Field(..., description="Transactions per second over the default window")
    difficulty: float
    current_difficulty_epoch: int = Field(..., ge=1)
    blocks_until_retarget: float
    average_seconds_per_block_for_current_epoch: Optional[int] = Field(
        None, description="Null at the first block of an epoch"
    )
    estimated_seconds_until_retarget: float
    estimated_hash_rate_for_last_2016_blocks: float
    subsidy_in_sats_at_current_block_height: int

    model_config = {
        "json_schema_extra": {
            "example": {
                "price": 22122.0,
                "block_count": 700000,
                "total_money_supply": 70000.1,
                "time_of_last_block": 1631333672,
                "total_transactions_count": 663899987,
                "tps_30days": 2.88,
                "difficulty": 18415156832118.24,
                "current_difficulty_epoch": 348,
                "blocks_until_retarget": 1568.0,
                "average_seconds_per_block_for_current_epoch": 588,
                "estimated_seconds_until_retarget": 940800.0,
                "estimated_hash_rate_for_last_2016_blocks": 1.3e20,
                "subsidy_in_sats_at_current_block_height": 625000000,
            }
        }
    }


class ErrorResponse(BaseModel):
    """Structured error body."""

    error: str = Field(..., description="Error kind, e.g. upstream_unavailable")
    detail: str
    correlation_id: Optional[str] = None


class ServiceCheck(BaseModel):
    """Individual service health check result"""

    status: str = Field(description="ok, error, or timeout")
    latency_ms: Optional[float] = Field(
        default=None, description="Service response time in milliseconds"
    )
    error: Optional[str] = Field(default=None, description="Error message if failed")


class HealthStatus(BaseModel):
    """API health check response with node connectivity check"""

    status: str = Field(description="healthy or unhealthy")
    timestamp: datetime
    uptime_seconds: float
    started_at: str
    checks: Dict[str, ServiceCheck] = Field(default_factory=dict)
    memory_mb: Optional[float] = Field(
        default=None, description="Current process memory usage in MB"
    )
