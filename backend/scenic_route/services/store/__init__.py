"""Route store: in-memory LRU or Redis."""

from .service import InMemoryRouteStore, RedisRouteStore, RouteStore, create_route_store

__all__ = [
    "InMemoryRouteStore",
    "RedisRouteStore",
    "RouteStore",
    "create_route_store",
]
