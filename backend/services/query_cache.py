"""
Query Cache - bounded in-memory TTL cache with prefix invalidation.

Holds computed analytics views keyed by (tenant, aggregation kind, filters).
The cache is a best-effort performance optimization, never a correctness
mechanism: a disabled cache raises CacheUnavailable and callers compute
directly.

Semantics:
- get() on an expired entry is a miss; the entry is removed lazily
- set() overwrites and resets expiry; at capacity exactly one
  least-recently-used entry is evicted first
- invalidate_prefix() removes every key starting with the prefix
- All operations take an internal lock. There is no single-flight: two
  concurrent misses for the same key both compute and both set.

Usage:
    from services.query_cache import QueryCache

    cache = QueryCache(max_size=1000, default_ttl=1800)
    cache.set("dashboard:t1:trend:{}", view)
    cache.invalidate_prefix("dashboard:t1:")
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger('query_cache')


class CacheUnavailable(RuntimeError):
    """Cache backend is disabled or unreachable. Callers fall through to direct computation."""
    pass


class QueryCache:
    """LRU cache with per-entry TTL, safe for concurrent request threads."""

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int = 1800,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._enabled = enabled
        self._clock = clock
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _check_available(self) -> None:
        if not self._enabled:
            raise CacheUnavailable("query cache is disabled")

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss/expiry."""
        self._check_available()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Insert or overwrite. Evicts the least-recently-used entry when full."""
        self._check_available()
        ttl = self._default_ttl if ttl is None else ttl
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("cache_evict key=%s", evicted_key)
            self._entries[key] = (value, self._clock() + ttl)

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove all entries whose key starts with prefix. Returns count removed."""
        self._check_available()
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
        if doomed:
            logger.info("cache_invalidate prefix=%s removed=%d", prefix, len(doomed))
        return len(doomed)

    def count_prefix(self, prefix: str) -> int:
        """Live (unexpired) entries whose key starts with prefix."""
        self._check_available()
        now = self._clock()
        with self._lock:
            return sum(1 for k, (_, expires) in self._entries.items() if k.startswith(prefix) and now < expires)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Non-mutating membership check (respects expiry, does not touch recency)."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() < entry[1]

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics for monitoring."""
        with self._lock:
            return {
                'enabled': self._enabled,
                'size': len(self._entries),
                'maxsize': self._max_size,
                'default_ttl': self._default_ttl,
                'hits': self._hits,
                'misses': self._misses,
                'evictions': self._evictions,
            }
