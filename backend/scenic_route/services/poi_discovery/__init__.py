"""POI discovery along a baseline path."""

from .service import (
    DEFAULT_CATEGORIES,
    INTEREST_TO_CATEGORIES,
    POIDiscoveryService,
    categories_for_interests,
)

__all__ = [
    "DEFAULT_CATEGORIES",
    "INTEREST_TO_CATEGORIES",
    "POIDiscoveryService",
    "categories_for_interests",
]
