"""Directions: Google (with key) + OSRM (keyless)."""

from .service import (
    DirectionsLeg,
    DirectionsResult,
    DirectionsService,
    GoogleDirectionsService,
    OSRMDirectionsService,
    create_directions_service,
    map_google_maneuver,
    map_osrm_maneuver,
)

__all__ = [
    "DirectionsLeg",
    "DirectionsResult",
    "DirectionsService",
    "GoogleDirectionsService",
    "OSRMDirectionsService",
    "create_directions_service",
    "map_google_maneuver",
    "map_osrm_maneuver",
]
