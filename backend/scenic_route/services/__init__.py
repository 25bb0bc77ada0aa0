"""Scenic Route Services.

Service layer components:
- Geocoding: Google Geocoding API, Nominatim without a key
- Directions: Google Directions API, OSRM without a key
- Places: Google Places Nearby Search, Overpass without a key
- POI discovery / scoring: candidates along the baseline path
- Progress / store: generation state and its persistence
- Route planner: the end-to-end pipeline
"""

from .directions import DirectionsResult, DirectionsService, create_directions_service
from .geocoding import GeocodingService, create_geocoding_service
from .places import NearbyPlace, PlacesService, create_places_service
from .poi_discovery import POIDiscoveryService, categories_for_interests
from .poi_scorer import rank_pois, score_candidates, score_poi
from .progress import ProgressTracker
from .route_planner import GenerationResult, ScenicRouteService, create_route_service
from .store import InMemoryRouteStore, RedisRouteStore, RouteStore, create_route_store

__all__ = [
    # Providers
    "DirectionsResult",
    "DirectionsService",
    "create_directions_service",
    "GeocodingService",
    "create_geocoding_service",
    "NearbyPlace",
    "PlacesService",
    "create_places_service",
    # POIs
    "POIDiscoveryService",
    "categories_for_interests",
    "rank_pois",
    "score_candidates",
    "score_poi",
    # State
    "ProgressTracker",
    "InMemoryRouteStore",
    "RedisRouteStore",
    "RouteStore",
    "create_route_store",
    # Pipeline
    "GenerationResult",
    "ScenicRouteService",
    "create_route_service",
]
