"""Remote backends and fallback content."""

from content_generation.providers.base import (
    GenerationBackend,
    HttpCacheCleanupBackend,
    HttpGenerationBackend,
)
from content_generation.providers.fallbacks import (
    FALLBACK_CONTENT,
    FallbackResolver,
    get_fallback_content,
)

__all__ = [
    "GenerationBackend",
    "HttpGenerationBackend",
    "HttpCacheCleanupBackend",
    "FALLBACK_CONTENT",
    "FallbackResolver",
    "get_fallback_content",
]
