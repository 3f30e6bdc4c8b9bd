"""Typed errors raised by the content generation core."""

from typing import Any, Dict, Optional

from content_generation.models.content import ErrorKind


class GenerationError(Exception):
    """Base exception for content generation failures."""

    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        if kind is not None:
            self.kind = ErrorKind(kind)
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class GenerationTimeoutError(GenerationError):
    """The remote call did not finish within the timeout."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Request timed out", timeout_ms: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        if timeout_ms is not None:
            self.details["timeout_ms"] = timeout_ms


class NetworkError(GenerationError):
    """Connectivity failure or unexpected HTTP status."""

    kind = ErrorKind.NETWORK


class AuthorizationError(GenerationError):
    """The generation service rejected our credentials (401/403)."""

    kind = ErrorKind.AUTHORIZATION


class RateLimitError(GenerationError):
    """The generation service is throttling us (429)."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServiceUnavailableError(GenerationError):
    """The generation service failed on its side (5xx)."""

    kind = ErrorKind.SERVICE_UNAVAILABLE


class GenerationCanceledError(GenerationError):
    """The call was canceled before it finished. Never retried."""

    kind = ErrorKind.CANCELED

    def __init__(self, message: str = "Generation canceled", **kwargs):
        super().__init__(message, **kwargs)


_ERRORS_BY_KIND = {
    ErrorKind.TIMEOUT: GenerationTimeoutError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.AUTHORIZATION: AuthorizationError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.SERVICE_UNAVAILABLE: ServiceUnavailableError,
    ErrorKind.GENERIC: GenerationError,
    ErrorKind.CANCELED: GenerationCanceledError,
}


def error_for_kind(kind: ErrorKind, message: str, **kwargs) -> GenerationError:
    """Build the typed error for ``kind``."""
    error_cls = _ERRORS_BY_KIND[ErrorKind(kind)]
    if error_cls is not RateLimitError:
        kwargs.pop("retry_after", None)
    return error_cls(message, **kwargs)


__all__ = [
    "GenerationError",
    "GenerationTimeoutError",
    "NetworkError",
    "AuthorizationError",
    "RateLimitError",
    "ServiceUnavailableError",
    "GenerationCanceledError",
    "error_for_kind",
]
