"""
Error kinds raised by the node client, the argument normalizer and the
dashboard aggregator.

Each error carries a machine-readable ``kind`` that the HTTP layer maps to a
status code (see api/errors.py). Nothing here knows about HTTP.
"""

from typing import Optional


class ChainStatsError(Exception):
    """Base class for every error surfaced to API callers."""

    kind = "internal_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UpstreamUnavailable(ChainStatsError):
    """Node unreachable, timed out, rejected credentials or failed a call."""

    kind = "upstream_unavailable"

    def __init__(self, message: str, rpc_code: Optional[int] = None):
        self.rpc_code = rpc_code
        super().__init__(message)


class UpstreamDataMissing(ChainStatsError):
    """A field the caller needs is absent from the node's reply."""

    kind = "upstream_data_missing"

    def __init__(self, field: str, source: str = "getblockstats"):
        self.field = field
        self.source = source
        super().__init__(f"{source} response is missing required field '{field}'")


class InvalidArgument(ChainStatsError):
    """Malformed or unsupported request parameter."""

    kind = "invalid_argument"

    def __init__(self, message: str, rpc_code: Optional[int] = None):
        self.rpc_code = rpc_code
        super().__init__(message)


class NotImplementedParameter(ChainStatsError):
    """Parameter is accepted by the endpoint but not honored yet."""

    kind = "not_implemented"

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Parameter '{parameter}' is not implemented yet")


class UpstreamTimeout(UpstreamUnavailable):
    """Node did not answer within the configured timeout."""
