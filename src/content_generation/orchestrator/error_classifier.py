"""Normalize arbitrary failures into the closed ErrorKind taxonomy."""

import asyncio
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from content_generation.exceptions import GenerationError, error_for_kind
from content_generation.models.content import ErrorKind


def extract_status_code(failure: Any) -> Optional[int]:
    """Pull an HTTP-like status code off a failure, if it carries one."""
    if isinstance(failure, Mapping):
        candidates = [failure.get("status"), failure.get("status_code")]
    else:
        response = getattr(failure, "response", None)
        candidates = [
            getattr(failure, "status_code", None),
            getattr(failure, "status", None),
            getattr(response, "status_code", None) if response is not None else None,
        ]

    for candidate in candidates:
        if isinstance(candidate, bool):
            continue
        if isinstance(candidate, int):
            return candidate
        if isinstance(candidate, str) and candidate.isdigit():
            return int(candidate)
    return None


def _kind_for_status(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.AUTHORIZATION
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if status_code >= 500:
        return ErrorKind.SERVICE_UNAVAILABLE
    return ErrorKind.NETWORK


def classify(failure: Any) -> ErrorKind:
    """Map any failure to exactly one ErrorKind. Never raises.

    Rules are applied in priority order: already-tagged errors keep their
    kind, cancellation is terminal, transport timeouts and connectivity
    errors come next, then HTTP-like status codes, then ``GENERIC``.
    """
    try:
        if isinstance(failure, GenerationError):
            return failure.kind
        if isinstance(failure, asyncio.CancelledError):
            return ErrorKind.CANCELED
        if isinstance(failure, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
            return ErrorKind.TIMEOUT
        if isinstance(failure, (httpx.TransportError, ConnectionError)):
            return ErrorKind.NETWORK

        status_code = extract_status_code(failure)
        if status_code is not None:
            return _kind_for_status(status_code)

        if isinstance(failure, OSError):
            return ErrorKind.NETWORK
    except Exception:
        return ErrorKind.GENERIC
    return ErrorKind.GENERIC


def _retry_after(failure: Any) -> Optional[float]:
    response = getattr(failure, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    try:
        value = headers.get("retry-after")
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def to_generation_error(failure: Any) -> GenerationError:
    """Wrap ``failure`` into the typed error for its kind."""
    if isinstance(failure, GenerationError):
        return failure

    kind = classify(failure)
    message = str(failure) or type(failure).__name__
    error = error_for_kind(
        kind,
        message,
        status_code=extract_status_code(failure),
        retry_after=_retry_after(failure),
        details={"source": type(failure).__name__},
    )
    if isinstance(failure, BaseException):
        error.__cause__ = failure
    return error


__all__ = ["classify", "extract_status_code", "to_generation_error"]
