"""In-memory response cache owned by one orchestrator."""

import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

import structlog

from content_generation.models.content import ContentType

logger = structlog.get_logger()


@dataclass
class CacheEntry:
    """A cached generation result."""

    key: str
    content_type: ContentType
    value: str
    created_at: float = field(default_factory=time.time)


class RequestCache:
    """Bounded LRU map of cache key to generated content.

    All operations are synchronous, so a mutation can never interleave with
    another coroutine on the same event loop.
    """

    def __init__(self, max_entries: int = 500):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return entry.value

    def set(self, key: str, value: str, content_type: ContentType | str) -> None:
        self._entries[key] = CacheEntry(key=key, content_type=ContentType(content_type), value=value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache entry evicted", cache_key=evicted)

    def clear(self, type_filter: ContentType | str | None = None) -> int:
        """Drop every entry, or only those of ``type_filter``. Returns the count removed."""
        if type_filter is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed

        content_type = ContentType(type_filter)
        doomed = [key for key, entry in self._entries.items() if entry.content_type is content_type]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def purge_older_than(self, seconds: float) -> int:
        cutoff = time.time() - seconds
        doomed = [key for key, entry in self._entries.items() if entry.created_at < cutoff]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
