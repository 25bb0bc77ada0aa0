"""Scenic Route models."""

from .core import (
    CandidatePOI,
    Coordinates,
    GenerationState,
    GenerationStatus,
    LatLng,
    LocationCheck,
    LocationInput,
    RouteInstruction,
    RoutePath,
    RoutePreferences,
    RouteRequest,
    RouteVariant,
    RouteWaypoint,
    ScoredPOI,
)
from .errors import (
    AppError,
    ErrorCode,
    InvalidInputError,
    InvalidTransitionError,
    NoViableRouteError,
    RouteGenerationFailed,
    RouteNotFoundError,
    RouteNotReadyError,
    ScenicRouteError,
    UpstreamUnavailableError,
)

__all__ = [
    # Core
    "CandidatePOI",
    "Coordinates",
    "GenerationState",
    "GenerationStatus",
    "LatLng",
    "LocationCheck",
    "LocationInput",
    "RouteInstruction",
    "RoutePath",
    "RoutePreferences",
    "RouteRequest",
    "RouteVariant",
    "RouteWaypoint",
    "ScoredPOI",
    # Errors
    "AppError",
    "ErrorCode",
    "InvalidInputError",
    "InvalidTransitionError",
    "NoViableRouteError",
    "RouteGenerationFailed",
    "RouteNotFoundError",
    "RouteNotReadyError",
    "ScenicRouteError",
    "UpstreamUnavailableError",
]
