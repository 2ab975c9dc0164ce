"""
Structured Logging Configuration with Correlation ID

Implements:
- structlog JSON output on top of stdlib logging
- Correlation ID middleware for request tracing
- Context enrichment for all log messages
"""

import logging
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

CORRELATION_ID_HEADER = "X-Correlation-ID"


# =============================================================================
# Structlog Configuration
# =============================================================================


def configure_structured_logging(level: str = "INFO"):
    """
    Configure stdlib logging and structlog for JSON output.

    Processors:
    - Merge contextvars (correlation_id)
    - Filter by level
    - Add logger name and log level
    - ISO timestamp
    - Stack traces and exception info
    - JSON output (machine-readable)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Injects correlation_id into all logs and responses.

    Flow:
    1. Extract correlation_id from X-Correlation-ID header (or generate new)
    2. Bind to structlog context (available in all subsequent logs)
    3. Add to response headers
    4. Clear context after request completes
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()


# =============================================================================
# Helper Functions
# =============================================================================


def get_correlation_id(request: Request) -> Optional[str]:
    """Correlation ID bound by the middleware, None outside a request."""
    return getattr(request.state, "correlation_id", None)


def get_logger(name: str):
    """
    Get structured logger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("dashboard_built", block_count=700000)
    """
    return structlog.get_logger(name)
