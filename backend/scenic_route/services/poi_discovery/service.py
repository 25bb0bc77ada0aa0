"""POI discovery along a baseline path.

Samples a handful of points along the path, runs one nearby-place search per
sample point and merges the results:

1. Pick sample points evenly spaced by vertex index
2. Query the places provider at every sample concurrently, each bounded by a timeout
3. Merge in (sample index, provider order) so output never depends on which
   request finished first
4. Drop duplicates by place id; the earliest sample wins

A failed or timed-out sample is logged and skipped. Discovery as a whole
never raises for upstream failures; no results means an empty list.

Candidates are not capped here. The caller caps after scoring so the scorer
sees every discovered POI.
"""

import asyncio
import logging

from scenic_route.models import CandidatePOI, Coordinates
from scenic_route.services.places import NearbyPlace, PlacesService
from scenic_route.utils.geo import haversine_meters, sample_indices

logger = logging.getLogger(__name__)

# Attractions, museums, historical sites, landmarks, parks, natural
# features and high-rated businesses
DEFAULT_CATEGORIES = [
    "tourist_attraction",
    "museum",
    "historical_site",
    "landmark",
    "park",
    "natural_feature",
    "restaurant",
]

INTEREST_TO_CATEGORIES = {
    "history": ["historical_site", "museum", "landmark"],
    "historic": ["historical_site", "landmark"],
    "architecture": ["landmark", "historical_site"],
    "landmarks": ["landmark", "tourist_attraction"],
    "museums": ["museum"],
    "art": ["museum"],
    "culture": ["museum", "tourist_attraction", "historical_site"],
    "nature": ["park", "natural_feature"],
    "parks": ["park"],
    "scenic": ["natural_feature", "park", "tourist_attraction"],
    "views": ["natural_feature"],
    "food": ["restaurant"],
    "restaurants": ["restaurant"],
    "sightseeing": ["tourist_attraction", "landmark", "natural_feature"],
}


def categories_for_interests(interests: list[str] | None) -> list[str]:
    """Translate user interests into place categories.

    Falls back to the full allow-list when no interest is recognised.
    """
    categories: list[str] = []
    for interest in interests or []:
        interest_lower = interest.strip().lower()
        matched = INTEREST_TO_CATEGORIES.get(interest_lower)
        if matched is None:
            # Try partial matching ("historic sites" -> "historic")
            matched = [
                c
                for key, tag_list in INTEREST_TO_CATEGORIES.items()
                if key in interest_lower or interest_lower in key
                for c in tag_list
            ]
        for category in matched:
            if category not in categories:
                categories.append(category)
    return categories or list(DEFAULT_CATEGORIES)


class POIDiscoveryService:
    """Finds candidate POIs near a path through a places provider."""

    def __init__(
        self,
        places: PlacesService,
        sample_count: int = 5,
        radius_meters: int = 5000,
        per_sample_limit: int = 10,
        timeout: float = 15.0,
    ) -> None:
        self._places = places
        self._sample_count = sample_count
        self._radius = radius_meters
        self._per_sample_limit = per_sample_limit
        self._timeout = timeout

    @property
    def radius_meters(self) -> int:
        return self._radius

    async def close(self) -> None:
        await self._places.close()

    async def discover(
        self,
        path: list[tuple[float, float]],
        categories: list[str] | None = None,
    ) -> list[CandidatePOI]:
        """Discover deduplicated candidate POIs along ``path``."""
        if not path:
            return []

        categories = categories or list(DEFAULT_CATEGORIES)
        indices = sample_indices(len(path), self._sample_count)
        logger.info(
            f"[POI] Searching {len(indices)} sample points "
            f"(radius={self._radius}m, categories={categories})"
        )

        # gather keeps results in sample order regardless of completion order
        batches = await asyncio.gather(*[
            self._search_sample(index, path[index], categories) for index in indices
        ])

        candidates: list[CandidatePOI] = []
        seen_ids: set[str] = set()
        for index, places in zip(indices, batches):
            for order, place in enumerate(places):
                if place.place_id in seen_ids:
                    continue
                seen_ids.add(place.place_id)
                candidates.append(self._to_candidate(place, index, order))

        logger.info(f"[POI] Discovered {len(candidates)} unique candidates")
        return candidates

    async def _search_sample(
        self,
        index: int,
        point: tuple[float, float],
        categories: list[str],
    ) -> list[NearbyPlace]:
        center = Coordinates.from_tuple(point)
        try:
            places = await asyncio.wait_for(
                self._places.nearby(center, self._radius, categories),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[POI] Sample {index} at ({point[0]:.5f}, {point[1]:.5f}) timed out")
            return []
        except Exception as e:
            logger.warning(f"[POI] Sample {index} at ({point[0]:.5f}, {point[1]:.5f}) failed: {e}")
            return []

        # Providers treat the radius as a hint; enforce it
        within = [
            p for p in places
            if haversine_meters(point, (p.lat, p.lng)) <= self._radius
        ]
        if len(within) < len(places):
            logger.debug(f"[POI] Sample {index}: dropped {len(places) - len(within)} places outside radius")
        return within[: self._per_sample_limit]

    @staticmethod
    def _to_candidate(place: NearbyPlace, sample_index: int, order: int) -> CandidatePOI:
        return CandidatePOI(
            place_id=place.place_id,
            name=place.name,
            coordinates=place.coordinates,
            category=place.category,
            rating=place.rating,
            review_count=place.review_count,
            sample_index=sample_index,
            discovery_order=order,
        )
