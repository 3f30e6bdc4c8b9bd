"""Data models for content generation."""

from content_generation.models.content import (
    CACHE_KEY_PREFIX,
    CleanupResult,
    ContentRequest,
    ContentType,
    ErrorKind,
    ExperimentAssignment,
    GenerationAttempt,
    GenerationRequestPayload,
    GenerationState,
    build_cache_key,
)

__all__ = [
    "CACHE_KEY_PREFIX",
    "CleanupResult",
    "ContentRequest",
    "ContentType",
    "ErrorKind",
    "ExperimentAssignment",
    "GenerationAttempt",
    "GenerationRequestPayload",
    "GenerationState",
    "build_cache_key",
]
