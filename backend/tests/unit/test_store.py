"""Unit tests for the route store and its LRU cache."""

from datetime import datetime, timezone

import pytest

from scenic_route.config import Settings
from scenic_route.models import GenerationState, GenerationStatus
from scenic_route.services.store import (
    InMemoryRouteStore,
    RedisRouteStore,
    RouteStore,
    create_route_store,
)
from scenic_route.utils import cache as cache_module
from scenic_route.utils.cache import LRUCache


def make_state(route_id: str, progress: int = 10) -> GenerationState:
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return GenerationState(route_id=route_id, progress=progress, created_at=now, updated_at=now)


class TestLRUCache:
    """Tests for the TTL-aware LRU cache."""

    def test_get_missing(self) -> None:
        assert LRUCache().get("missing") is None

    def test_evicts_least_recently_used(self) -> None:
        cache = LRUCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3
        assert len(cache) == 2

    def test_expiry(self, monkeypatch) -> None:
        cache = LRUCache(ttl_seconds=60)
        cache.set("short", "x", ttl_seconds=10)
        cache.set("default", "y")
        now = cache_module.time.time()
        monkeypatch.setattr(cache_module.time, "time", lambda: now + 30)
        assert cache.get("short") is None
        assert cache.get("default") == "y"

    def test_pinned_values_survive_eviction(self) -> None:
        cache = LRUCache(max_size=2, evictable=lambda value: value != "pinned")
        cache.set("a", "pinned")
        cache.set("b", "done")
        cache.set("c", "done")
        assert cache.get("a") == "pinned"
        assert cache.get("b") is None
        assert cache.get("c") == "done"

    def test_grows_past_max_size_when_everything_is_pinned(self) -> None:
        cache = LRUCache(max_size=1, evictable=lambda value: False)
        cache.set("a", 1)
        cache.set("b", 2)
        assert len(cache) == 2

    def test_expired_entries_evicted_first(self, monkeypatch) -> None:
        cache = LRUCache(max_size=2, evictable=lambda value: False)
        cache.set("short", 1, ttl_seconds=10)
        cache.set("long", 2)
        now = cache_module.time.time()
        monkeypatch.setattr(cache_module.time, "time", lambda: now + 30)
        cache.set("new", 3)
        assert len(cache) == 2
        assert cache.get("long") == 2


class TestInMemoryRouteStore:
    """Tests for InMemoryRouteStore."""

    def test_route_key(self) -> None:
        assert RouteStore.build_route_key("3f2a") == "route:3f2a"

    @pytest.mark.asyncio
    async def test_save_and_get(self) -> None:
        store = InMemoryRouteStore()
        await store.save_state(make_state("r1", progress=40))
        state = await store.get_state("r1")
        assert state == make_state("r1", progress=40)
        assert state.status == GenerationStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_overwrite(self) -> None:
        store = InMemoryRouteStore()
        await store.save_state(make_state("r1", progress=10))
        await store.save_state(make_state("r1", progress=70))
        assert (await store.get_state("r1")).progress == 70

    @pytest.mark.asyncio
    async def test_variant_round_trips(self, simple_variant) -> None:
        store = InMemoryRouteStore()
        state = make_state("r1").model_copy(update={
            "status": GenerationStatus.COMPLETED,
            "progress": 100,
            "variant": simple_variant,
        })
        await store.save_state(state)
        assert (await store.get_state("r1")).variant == simple_variant

    @pytest.mark.asyncio
    async def test_unknown(self) -> None:
        assert await InMemoryRouteStore().get_state("nope") is None

    @pytest.mark.asyncio
    async def test_processing_states_are_not_evicted(self) -> None:
        store = InMemoryRouteStore(max_size=2)
        await store.save_state(make_state("running"))
        for route_id in ("done-1", "done-2"):
            await store.save_state(make_state(route_id).model_copy(update={"status": GenerationStatus.FAILED}))
        assert await store.get_state("running") is not None
        assert await store.get_state("done-1") is None
        assert await store.get_state("done-2") is not None


class TestCreateRouteStore:
    def test_in_memory_without_redis_url(self) -> None:
        assert isinstance(create_route_store(Settings()), InMemoryRouteStore)

    def test_redis_with_url(self) -> None:
        store = create_route_store(Settings(redis_url="redis://localhost:6379/0", route_cache_ttl_seconds=600))
        assert isinstance(store, RedisRouteStore)
        assert store._default_ttl == 600
