"""In-memory LRU cache with TTL expiration.

Process-level store used when no Redis URL is configured. Entries survive
across requests in the same uvicorn worker, so status polling only works
against the worker that generated the route.
"""

import time
from collections import OrderedDict
from typing import Any, Callable, Optional


class LRUCache:
    """TTL-aware LRU cache for JSON-serializable values.

    ``evictable`` decides which values may be dropped when the cache is full.
    Pinned values only leave on expiry, so the cache can grow past
    ``max_size`` while many of them are live.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: int = 86400,
        evictable: Optional[Callable[[Any], bool]] = None,
    ) -> None:
        self._cache: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._evictable = evictable

    def get(self, key: str) -> Any | None:
        if key not in self._cache:
            return None
        expires_at, value = self._cache[key]
        if time.time() > expires_at:
            del self._cache[key]
            return None
        self._cache.move_to_end(key)
        return value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._ttl
        if key in self._cache:
            self._cache.move_to_end(key)
        self._cache[key] = (time.time() + ttl, value)
        if len(self._cache) > self._max_size:
            self._evict(keep=key)

    def _evict(self, keep: str) -> None:
        now = time.time()
        expired = [k for k, (expires_at, _) in self._cache.items() if now > expires_at]
        for k in expired:
            del self._cache[k]
        if len(self._cache) <= self._max_size:
            return
        # Oldest first, skipping pinned values and the entry just written
        for k, (_, value) in self._cache.items():
            if k != keep and (self._evictable is None or self._evictable(value)):
                del self._cache[k]
                return

    def __len__(self) -> int:
        return len(self._cache)
