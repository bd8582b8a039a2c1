"""
Error taxonomy for the aggregation engine.

Only ``aggregate`` and ``resolve_position`` raise the top-level kinds
(``NoPoolsFoundError``, ``PositionLookupFailedError``). Per-pool failures are
absorbed by the position indexer and never surface here.
"""


class LPLensError(Exception):
    """Base exception for engine operations."""


class InvalidInputError(LPLensError, ValueError):
    """Raised when caller input is empty or malformed. Not retried."""


class UpstreamError(LPLensError):
    """Base for failures attributable to an external source."""

    def __init__(self, message: str, source: str = "upstream"):
        super().__init__(message)
        self.source = source


class UpstreamUnavailableError(UpstreamError):
    """Network failure, timeout or non-2xx answer. Safe to retry later."""


class UpstreamMalformedError(UpstreamError):
    """Upstream answered but the body does not match the expected schema."""


class NoPoolsFoundError(LPLensError):
    """Discovery returned no venue at all for the requested token."""

    def __init__(self, token_address: str):
        super().__init__(f"No pools found for token {token_address}")
        self.token_address = token_address


class PositionLookupFailedError(LPLensError):
    """An on-chain position could not be resolved completely."""

    def __init__(self, position_id, reason: str):
        super().__init__(f"Position {position_id} lookup failed: {reason}")
        self.position_id = position_id
        self.reason = reason
