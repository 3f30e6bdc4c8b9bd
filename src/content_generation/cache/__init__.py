"""Response cache and cache janitor."""

from content_generation.cache.janitor import CacheCleanupBackend, CacheJanitor, CleanupHandle
from content_generation.cache.request_cache import CacheEntry, RequestCache

__all__ = ["CacheCleanupBackend", "CacheJanitor", "CleanupHandle", "CacheEntry", "RequestCache"]
