"""Nearby places: Google Places (with key) + Overpass (keyless)."""

from .service import (
    GooglePlacesService,
    NearbyPlace,
    OverpassPlacesService,
    PlacesService,
    create_places_service,
)

__all__ = [
    "GooglePlacesService",
    "NearbyPlace",
    "OverpassPlacesService",
    "PlacesService",
    "create_places_service",
]
