"""Route store.

Persists the ``GenerationState`` of every route request so status polling and
on-route checks can look it up by route id. Two implementations:

- InMemoryRouteStore: process-local LRU with TTL (default, no setup)
- RedisRouteStore: Redis, shared between workers (when REDIS_URL is set)

States are stored as JSON under ``route:{route_id}``.
"""

import json
import logging
from abc import ABC, abstractmethod

import redis.asyncio as redis

from scenic_route.config import Settings
from scenic_route.models import GenerationState, GenerationStatus
from scenic_route.utils.cache import LRUCache

logger = logging.getLogger(__name__)


class RouteStore(ABC):
    """Abstract base class for generation-state storage."""

    @abstractmethod
    async def save_state(self, state: GenerationState, ttl_seconds: int | None = None) -> None:
        """Store (or overwrite) the state for ``state.route_id``."""
        pass

    @abstractmethod
    async def get_state(self, route_id: str) -> GenerationState | None:
        """Return the stored state, or None if unknown or expired."""
        pass

    async def close(self) -> None:
        pass

    @staticmethod
    def build_route_key(route_id: str) -> str:
        """Generate the storage key for a route.

        Example:
            >>> RouteStore.build_route_key("3f2a")
            'route:3f2a'
        """
        return f"route:{route_id}"


class InMemoryRouteStore(RouteStore):
    """Process-local store backed by an LRU cache.

    Only finished states count toward ``max_size`` evictions. Requests still
    processing are kept until they finish or their TTL runs out.
    """

    def __init__(self, max_size: int = 1000, default_ttl: int = 86400) -> None:
        self._cache = LRUCache(
            max_size=max_size,
            ttl_seconds=default_ttl,
            evictable=lambda data: data.get("status") != GenerationStatus.PROCESSING.value,
        )

    async def save_state(self, state: GenerationState, ttl_seconds: int | None = None) -> None:
        self._cache.set(
            self.build_route_key(state.route_id),
            state.model_dump(mode="json"),
            ttl_seconds=ttl_seconds,
        )

    async def get_state(self, route_id: str) -> GenerationState | None:
        data = self._cache.get(self.build_route_key(route_id))
        if data is None:
            return None
        return GenerationState.model_validate(data)


class RedisRouteStore(RouteStore):
    """Redis-based implementation of the route store.

    Attributes:
        _client: The Redis async client instance.
        _default_ttl: Default TTL in seconds for stored states.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        default_ttl: int = 86400,
    ) -> None:
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_connected(self) -> redis.Redis:
        if self._client is None:
            await self.connect()
        return self._client  # type: ignore

    async def save_state(self, state: GenerationState, ttl_seconds: int | None = None) -> None:
        client = await self._ensure_connected()
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        await client.set(
            self.build_route_key(state.route_id),
            state.model_dump_json(),
            ex=ttl,
        )

    async def get_state(self, route_id: str) -> GenerationState | None:
        client = await self._ensure_connected()
        value = await client.get(self.build_route_key(route_id))
        if value is None:
            return None
        try:
            return GenerationState.model_validate(json.loads(value))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"[STORE] Discarding unreadable state for route {route_id}: {e}")
            return None



def create_route_store(settings: Settings) -> RouteStore:
    """Redis when REDIS_URL is set, in-memory otherwise."""
    if settings.redis_url:
        logger.info("[STORE] Using Redis route store")
        return RedisRouteStore(settings.redis_url, default_ttl=settings.route_cache_ttl_seconds)
    logger.info("[STORE] Using in-memory route store")
    return InMemoryRouteStore(default_ttl=settings.route_cache_ttl_seconds)
