"""
Embedding Cache.

Process-wide cache of embedding vectors keyed by a prefix of the
normalized input text. Injected into EmbeddingClient rather than held
as module state, so its lifetime follows the application that owns it.

Features:
- LRU eviction with a configurable capacity (None = unbounded)
- Optional TTL per entry
- Explicit clear() for operators after bulk knowledge base edits
- Thread-safe for multi-threaded hosts (single lock around the map)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class _CacheItem:
    vector: list[float]
    stored_at: float


class EmbeddingCache:
    """LRU/TTL cache of embedding vectors.

    Usage:
        cache = EmbeddingCache(max_entries=2048, ttl_seconds=None)
        cache.set("what is pdpl?", vector)
        vector = cache.get("what is pdpl?")
    """

    def __init__(
        self,
        max_entries: Optional[int] = 2048,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            max_entries: Capacity before least-recently-used eviction
            ttl_seconds: Entry lifetime; None keeps entries until evicted
            clock: Monotonic time source (injectable for tests)
        """
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive or None")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive or None")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._items: OrderedDict[str, _CacheItem] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[list[float]]:
        """Return a copy of the cached vector, or None on miss or expiry."""
        with self._lock:
            item = self._items.get(key)
            if item is None:
                self._misses += 1
                return None

            if self._is_expired(item):
                del self._items[key]
                self._misses += 1
                return None

            self._items.move_to_end(key)
            self._hits += 1
            return list(item.vector)

    def set(self, key: str, vector: list[float]) -> None:
        """Store a vector, evicting the least recently used entry if full."""
        with self._lock:
            self._items[key] = _CacheItem(vector=list(vector), stored_at=self._clock())
            self._items.move_to_end(key)

            while self.max_entries is not None and len(self._items) > self.max_entries:
                evicted_key, _ = self._items.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Evicted embedding cache entry: {evicted_key[:40]!r}")

    def clear(self) -> int:
        """Drop every entry. Returns the number of entries removed."""
        with self._lock:
            removed = len(self._items)
            self._items.clear()
        logger.info(f"Embedding cache cleared ({removed} entries)")
        return removed

    def stats(self) -> dict[str, Optional[float]]:
        """Return size and hit/miss counters."""
        with self._lock:
            return {
                "size": len(self._items),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            item = self._items.get(key)
            return item is not None and not self._is_expired(item)

    def _is_expired(self, item: _CacheItem) -> bool:
        if self.ttl_seconds is None:
            return False
        return self._clock() - item.stored_at >= self.ttl_seconds
