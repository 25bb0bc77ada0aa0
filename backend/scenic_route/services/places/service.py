"""Nearby place search around a point.

Two providers:
- GooglePlacesService: Google Places Nearby Search (ratings + review counts)
- OverpassPlacesService: OpenStreetMap Overpass API (free, no ratings)

Categories are the internal names used by the scorer (``tourist_attraction``,
``museum``, ``historical_site``, ``landmark``, ``park``, ``natural_feature``,
``restaurant``); each provider translates them into its own query terms.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx

from scenic_route.config import Settings
from scenic_route.models import Coordinates, UpstreamUnavailableError
from scenic_route.services.poi_scorer import normalize_category

logger = logging.getLogger(__name__)

# Restaurants only qualify as stops when they are well rated
HIGH_RATING_THRESHOLD = 4.5

# Internal category -> Google Nearby Search parameters
GOOGLE_CATEGORY_QUERIES = {
    "tourist_attraction": {"type": "tourist_attraction"},
    "museum": {"type": "museum"},
    "historical_site": {"keyword": "historic site"},
    "landmark": {"keyword": "landmark"},
    "park": {"type": "park"},
    "natural_feature": {"keyword": "scenic viewpoint"},
    "restaurant": {"type": "restaurant"},
}

# Internal category -> OSM tags
OSM_CATEGORY_TAGS = {
    "tourist_attraction": ["tourism=attraction"],
    "museum": ["tourism=museum", "tourism=gallery"],
    "historical_site": ["historic=castle", "historic=ruins", "historic=archaeological_site", "historic=fort"],
    "landmark": ["historic=monument", "historic=memorial", "man_made=tower", "man_made=lighthouse"],
    "park": ["leisure=park", "leisure=nature_reserve", "boundary=national_park"],
    "natural_feature": ["tourism=viewpoint", "natural=peak", "natural=waterfall", "natural=beach"],
    "restaurant": ["amenity=restaurant"],
}


@dataclass
class NearbyPlace:
    """Raw place returned by a provider, before it becomes a CandidatePOI."""
    place_id: str
    name: str
    lat: float
    lng: float
    category: str
    rating: Optional[float] = None
    review_count: Optional[int] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


class PlacesService(ABC):
    """Abstract base class for nearby place search."""

    @abstractmethod
    async def nearby(
        self,
        center: Coordinates,
        radius_meters: int,
        categories: list[str],
    ) -> list[NearbyPlace]:
        """Find places of the given categories within ``radius_meters`` of ``center``.

        Raises:
            UpstreamUnavailableError: On transport or provider errors.
        """
        pass

    async def close(self) -> None:
        pass  # No persistent client to close


def category_from_google_types(types: list[str], fallback: str) -> str:
    """First Google type that maps onto a scored category, else ``fallback``."""
    for place_type in types:
        category = normalize_category(place_type)
        if category != "unknown":
            return category
    return fallback


class GooglePlacesService(PlacesService):
    """Google Places Nearby Search client.

    Nearby Search accepts a single ``type`` per request, so one request is
    issued per category and the results are merged in category order.
    """

    NEARBY_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

    def __init__(self, api_key: str, timeout: float = 15.0) -> None:
        if not api_key:
            raise ValueError("Google Places requires an API key")
        self._api_key = api_key
        self._timeout = timeout

    async def nearby(
        self,
        center: Coordinates,
        radius_meters: int,
        categories: list[str],
    ) -> list[NearbyPlace]:
        queries = [c for c in categories if c in GOOGLE_CATEGORY_QUERIES]
        if not queries:
            return []

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                batches = await asyncio.gather(*[
                    self._search(client, center, radius_meters, category)
                    for category in queries
                ])
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise UpstreamUnavailableError(f"Places request failed: {e}", service="places") from e

        places: list[NearbyPlace] = []
        seen: set[str] = set()
        for batch in batches:
            for place in batch:
                if place.place_id not in seen:
                    seen.add(place.place_id)
                    places.append(place)
        return places

    async def _search(
        self,
        client: httpx.AsyncClient,
        center: Coordinates,
        radius_meters: int,
        category: str,
    ) -> list[NearbyPlace]:
        params = {
            "location": f"{center.lat},{center.lng}",
            "radius": radius_meters,
            "key": self._api_key,
            **GOOGLE_CATEGORY_QUERIES[category],
        }
        response = await client.get(self.NEARBY_URL, params=params)
        response.raise_for_status()
        return self.parse_response(response.json(), category)

    @staticmethod
    def parse_response(data: dict, category: str) -> list[NearbyPlace]:
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise UpstreamUnavailableError(
                f"Places returned status {status}: {data.get('error_message', '')}".strip(),
                service="places",
            )

        places = []
        for result in data.get("results", []):
            place_id = result.get("place_id")
            name = result.get("name")
            location = result.get("geometry", {}).get("location")
            if not place_id or not name or not location:
                continue
            rating = result.get("rating")
            if category == "restaurant" and (rating or 0) < HIGH_RATING_THRESHOLD:
                continue
            types = result.get("types", [])
            places.append(NearbyPlace(
                place_id=place_id,
                name=name,
                lat=location["lat"],
                lng=location["lng"],
                category=category_from_google_types(types, category),
                rating=rating,
                review_count=result.get("user_ratings_total"),
            ))
        return places


class OverpassPlacesService(PlacesService):
    """OpenStreetMap Overpass API client.

    OSM carries no ratings or review counts, so those fields stay empty and
    restaurants only qualify when they are notable (Wikipedia/Wikidata link).
    """

    OVERPASS_URL = "https://overpass-api.de/api/interpreter"
    HEADERS = {"User-Agent": "ScenicRoute/1.0 (contact@scenicroute.app)"}

    def __init__(self, timeout: float = 15.0, limit: int = 50) -> None:
        self._timeout = timeout
        self._limit = limit

    def build_query(self, center: Coordinates, radius_meters: int, categories: list[str]) -> str:
        """Build an Overpass QL ``around`` query for the category tags."""
        around = f"(around:{radius_meters},{center.lat},{center.lng})"
        tag_queries = []
        for category in categories:
            for tag in OSM_CATEGORY_TAGS.get(category, []):
                key, value = tag.split("=", 1)
                selector = f'["{key}"]' if value == "*" else f'["{key}"="{value}"]'
                tag_queries.append(f"node{selector}{around};")
                tag_queries.append(f"way{selector}{around};")

        return f"""
[out:json][timeout:{max(1, int(self._timeout))}];
(
  {chr(10).join(tag_queries)}
);
out center {self._limit};
"""

    async def nearby(
        self,
        center: Coordinates,
        radius_meters: int,
        categories: list[str],
    ) -> list[NearbyPlace]:
        if not any(c in OSM_CATEGORY_TAGS for c in categories):
            return []
        query = self.build_query(center, radius_meters, categories)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, headers=self.HEADERS) as client:
                response = await client.post(
                    self.OVERPASS_URL,
                    data={"data": query},
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableError(f"Overpass query failed: {e}", service="places") from e

        return self.parse_response(data)

    @classmethod
    def parse_response(cls, data: dict) -> list[NearbyPlace]:
        places = []
        seen_names: set[str] = set()

        for element in data.get("elements", []):
            tags = element.get("tags", {})
            name = tags.get("name")
            if not name or name.lower() in seen_names:
                continue

            # Ways carry their center point instead of lat/lon
            if element.get("type") == "node":
                lat, lon = element.get("lat"), element.get("lon")
            elif "center" in element:
                lat, lon = element["center"].get("lat"), element["center"].get("lon")
            else:
                continue
            if lat is None or lon is None:
                continue

            category = cls._category_from_tags(tags)
            notable = bool(tags.get("wikipedia") or tags.get("wikidata"))
            if category == "restaurant" and not notable:
                continue

            places.append(NearbyPlace(
                place_id=f"osm_{element['type']}_{element['id']}",
                name=name,
                lat=lat,
                lng=lon,
                category=category,
            ))
            seen_names.add(name.lower())

        return places

    @staticmethod
    def _category_from_tags(tags: dict) -> str:
        """Determine the scored category from OSM tags."""
        tourism = tags.get("tourism", "")
        if tourism in ("museum", "gallery"):
            return "museum"
        if tourism == "attraction":
            return "tourist_attraction"
        if tags.get("historic") in ("monument", "memorial"):
            return "landmark"
        if tags.get("historic"):
            return "historical_site"
        if tags.get("man_made") in ("tower", "lighthouse"):
            return "landmark"
        if tags.get("leisure") in ("park", "nature_reserve") or tags.get("boundary") == "national_park":
            return "park"
        if tourism == "viewpoint" or tags.get("natural"):
            return "natural_feature"
        if tags.get("amenity") == "restaurant":
            return "restaurant"
        return "landmark"


def create_places_service(settings: Settings) -> PlacesService:
    """Google when a Places key is configured, Overpass otherwise."""
    if settings.places_api_key:
        logger.info("[POI] Using Google Places Nearby Search")
        return GooglePlacesService(settings.places_api_key, settings.http_timeout_seconds)
    logger.info("[POI] No Google key, using Overpass")
    return OverpassPlacesService(settings.http_timeout_seconds)
