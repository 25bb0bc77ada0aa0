"""Core data models for Scenic Route.

This module contains the Pydantic models used throughout the application for
representing coordinates, discovered points of interest (POIs), route
variants and the per-request generation state.

Coordinate order is latitude-first everywhere: ``Coordinates(lat, lng)``,
``(lat, lng)`` tuples and ``[lat, lng]`` JSON arrays.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

LatLng = tuple[float, float]


class Coordinates(BaseModel):
    """Geographic coordinates with validation.

    Latitude must be between -90 and 90 degrees.
    Longitude must be between -180 and 180 degrees.
    """

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in degrees")

    def as_tuple(self) -> LatLng:
        return (self.lat, self.lng)

    @classmethod
    def from_tuple(cls, point: LatLng) -> "Coordinates":
        return cls(lat=point[0], lng=point[1])


class LocationInput(BaseModel):
    """A route endpoint given as an address, as coordinates, or both.

    Coordinates win when both are present; the address is only geocoded
    when no coordinates were supplied.
    """

    address: Optional[str] = Field(None, description="Free-form address to geocode")
    coordinates: Optional[LatLng] = Field(
        None, description="[latitude, longitude] pair"
    )

    @model_validator(mode="after")
    def _check_location(self) -> "LocationInput":
        if self.coordinates is None and not (self.address and self.address.strip()):
            raise ValueError("either address or coordinates is required")
        if self.coordinates is not None:
            lat, lng = self.coordinates
            if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
                raise ValueError(
                    f"coordinates out of range (expected [lat, lng]): {list(self.coordinates)}"
                )
        return self


class RoutePreferences(BaseModel):
    """Caller preferences for a scenic route."""

    max_time_increase_percent: float = Field(
        20.0, ge=0, le=500, description="Allowed growth over the baseline duration"
    )
    interests: list[str] = Field(default_factory=list)
    min_stops: int = Field(3, ge=0, le=25)
    max_stops: int = Field(8, ge=0, le=25)

    @model_validator(mode="after")
    def _check_stop_bounds(self) -> "RoutePreferences":
        if self.min_stops > self.max_stops:
            raise ValueError("min_stops cannot exceed max_stops")
        return self


class RouteRequest(BaseModel):
    """A scenic route request between two locations."""

    start_location: LocationInput
    end_location: LocationInput
    preferences: RoutePreferences = Field(default_factory=RoutePreferences)


class RoutePath(BaseModel):
    """An immutable travel path with derived length and duration."""

    model_config = ConfigDict(frozen=True)

    coordinates: tuple[LatLng, ...] = Field(
        ..., description="Ordered [lat, lng] points"
    )
    distance_meters: float = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)

    def points(self) -> list[LatLng]:
        return list(self.coordinates)


class CandidatePOI(BaseModel):
    """A point of interest discovered near the baseline path."""

    model_config = ConfigDict(frozen=True)

    place_id: str = Field(..., min_length=1, description="Stable provider identifier")
    name: str = Field(..., min_length=1)
    coordinates: Coordinates
    category: str = Field("unknown", description="Normalized category tag")
    rating: Optional[float] = Field(None, ge=0, le=5)
    review_count: Optional[int] = Field(None, ge=0)
    sample_index: int = Field(
        ..., ge=0, description="Index of the path point whose search found this POI"
    )
    discovery_order: int = Field(
        0, ge=0, description="Position within that sample's search results"
    )


class ScoredPOI(CandidatePOI):
    """A candidate POI with its composite score and distance to the baseline."""

    score: int = Field(..., ge=0, le=100)
    distance_to_path_meters: float = Field(..., ge=0)
    path_segment_index: int = Field(
        0, ge=0, description="Baseline segment nearest to the POI"
    )


class RouteInstruction(BaseModel):
    """A single turn-by-turn instruction."""

    instruction: str
    distance_meters: float = Field(..., ge=0)
    coordinate: LatLng
    maneuver_type: str = "continue_straight"


class RouteWaypoint(BaseModel):
    """A POI the route is bent through."""

    coordinate: LatLng
    name: str
    type: str


class RouteVariant(BaseModel):
    """A candidate final result; exactly one is chosen per generation."""

    path: RoutePath
    pois: list[ScoredPOI] = Field(default_factory=list)
    instructions: list[RouteInstruction] = Field(default_factory=list)
    total_distance_meters: float = Field(..., ge=0)
    total_duration_seconds: float = Field(..., ge=0)
    baseline_duration_seconds: float = Field(..., ge=0)
    time_increase_percent: float = Field(..., ge=0)

    @property
    def waypoints(self) -> list[RouteWaypoint]:
        return [
            RouteWaypoint(
                coordinate=poi.coordinates.as_tuple(),
                name=poi.name,
                type=poi.category,
            )
            for poi in self.pois
        ]


class GenerationStatus(str, Enum):
    """Lifecycle of a route generation request."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class GenerationState(BaseModel):
    """Progress record for one route request.

    Mutated only through ``ProgressTracker``.
    """

    route_id: str
    status: GenerationStatus = GenerationStatus.PROCESSING
    progress: int = Field(0, ge=0, le=100)
    error_message: Optional[str] = None
    variant: Optional[RouteVariant] = None
    created_at: datetime
    updated_at: datetime
    cache_expires_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != GenerationStatus.PROCESSING


class LocationCheck(BaseModel):
    """Result of an on-route test."""

    on_route: bool
    distance_meters: float = Field(..., ge=0)
    nearest_point: LatLng
