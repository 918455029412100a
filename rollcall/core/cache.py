"""
Small in-memory TTL cache with LRU eviction.

Used as the process-local first stop when resolving a scanned participant
key to a participant id. Keys are derived from stable personal attributes,
so a cached mapping only goes stale when a participant's name or birth date
is edited (callers invalidate) or the record is removed (callers detect the
miss and re-query).

The lock is a reentrant ``threading.RLock`` so the cache is safe to share
between FastAPI's threadpool workers.
"""

import time
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from rollcall.core.constants import KEY_INDEX_CACHE_SIZE, KEY_INDEX_TTL_SECONDS


class TTLCache:
    """
    Thread-safe cache whose entries expire ``ttl_seconds`` after being set.

    Storage format: OrderedDict[cache_key: (value, expires_at)]
    """

    def __init__(self, max_size: int = 100, ttl_seconds: float = 60.0):
        self._cache: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.RLock()
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key`` or None, counting hits and misses."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._cache[key]
                self._misses += 1
                return None
            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any) -> None:
        """Store ``value``; evicts the least recently used entry when full."""
        with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = (value, time.monotonic() + self._ttl)
            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """Size and hit-rate figures for the health endpoint."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0
            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate_percent": round(hit_rate, 2),
            }


def get_or_fetch(cache: TTLCache, cache_key: str, fetch_func: Callable[[], Any]) -> Any:
    """
    Return the cached value or call ``fetch_func`` and cache a non-None result.

    None results are not cached so an unknown key is re-queried next time.
    """
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    fresh = fetch_func()
    if fresh is not None:
        cache.set(cache_key, fresh)
    return fresh


# Shared lookup-key -> participant id index
key_index_cache = TTLCache(max_size=KEY_INDEX_CACHE_SIZE, ttl_seconds=KEY_INDEX_TTL_SECONDS)
