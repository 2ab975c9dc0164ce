"""
HTTP mapping for chainstats errors.

| kind                   | status |
|------------------------|--------|
| upstream_unavailable   | 502    |
| upstream_data_missing  | 502    |
| invalid_argument       | 400    |
| not_implemented        | 501    |

Request validation failures (wrong query type, missing required query
parameter) are reported as invalid_argument with 400 as well.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.logging_config import get_correlation_id, get_logger
from api.models.dashboard_models import ErrorResponse
from chainstats.errors import (
    ChainStatsError,
    InvalidArgument,
    NotImplementedParameter,
    UpstreamDataMissing,
    UpstreamUnavailable,
)

logger = get_logger(__name__)

STATUS_BY_ERROR = {
    UpstreamUnavailable: 502,
    UpstreamDataMissing: 502,
    InvalidArgument: 400,
    NotImplementedParameter: 501,
}


def status_for(exc: ChainStatsError) -> int:
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 500


def _error_response(request: Request, status: int, kind: str, detail: str) -> JSONResponse:
    body = ErrorResponse(
        error=kind, detail=detail, correlation_id=get_correlation_id(request)
    )
    return JSONResponse(status_code=status, content=body.model_dump())


async def chainstats_error_handler(request: Request, exc: ChainStatsError) -> JSONResponse:
    status = status_for(exc)
    log = logger.warning if status >= 500 else logger.info
    log("request_failed", path=request.url.path, error=exc.kind, detail=exc.message, status=status)
    return _error_response(request, status, exc.kind, exc.message)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.info("request_rejected", path=request.url.path, detail=problems)
    return _error_response(request, 400, InvalidArgument.kind, problems)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChainStatsError, chainstats_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
