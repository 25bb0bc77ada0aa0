"""Geocoding: Google (with key) + Nominatim (keyless)."""

from .service import (
    GeocodingService,
    GoogleGeocodingService,
    NominatimGeocodingService,
    create_geocoding_service,
)

__all__ = [
    "GeocodingService",
    "GoogleGeocodingService",
    "NominatimGeocodingService",
    "create_geocoding_service",
]
