from __future__ import annotations
from typing import Optional


class SolanaTrackerError(Exception):
    """Base exception for client failures."""


class ConfigurationError(SolanaTrackerError):
    """Raised when client configuration is missing or invalid."""


class DataApiError(SolanaTrackerError):
    """Raised when a Data API request fails."""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class RateLimitError(DataApiError):
    """Raised when the Data API answers with HTTP 429."""

    def __init__(self, message: str, retry_after: Optional[int] = None) -> None:
        super().__init__(message, status=429, code="RATE_LIMIT_EXCEEDED")
        self.retry_after = retry_after


class ValidationError(DataApiError):
    """Raised when request input is rejected before any network call."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=400, code="VALIDATION_ERROR")


class DatastreamError(SolanaTrackerError):
    """Raised (or emitted) for live-update failures."""


class MalformedMessageError(DatastreamError):
    """An inbound frame could not be decoded into an envelope."""
