"""API routes for Scenic Route.

POST /routes                  generate a scenic variant of the A -> B route
GET  /routes/{id}/status      poll generation progress
POST /routes/validate-location  is the traveller still on the planned path?

Generation runs inline by default. With ``?wait=false`` the request is
registered, the pipeline runs as a background task and the caller polls the
status endpoint.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Response, status
from pydantic import BaseModel, Field

from scenic_route.config import get_settings
from scenic_route.models import (
    AppError,
    Coordinates,
    GenerationStatus,
    LatLng,
    LocationInput,
    RouteInstruction,
    RoutePreferences,
    RouteRequest,
    RouteVariant,
    RouteWaypoint,
    ScenicRouteError,
    ScoredPOI,
)
from scenic_route.services.progress import ProgressTracker, estimated_completion_seconds, partial_results
from scenic_route.services.route_planner import (
    GenerationResult,
    ScenicRouteService,
    create_route_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()

COORDINATE_PRECISION = 5


# Request/Response models
class CreateRouteRequest(BaseModel):
    """Request model for scenic route generation."""
    start_location: LocationInput
    end_location: LocationInput
    preferences: Optional[RoutePreferences] = None


class RouteBody(BaseModel):
    """The generated route geometry and timings."""
    coordinates: list[LatLng] = Field(..., description="[[lat, lng], ...]")
    total_distance_meters: float
    estimated_time_seconds: float
    time_increase_percent: float
    baseline_time_seconds: float
    instructions: list[RouteInstruction] = Field(default_factory=list)
    waypoints: list[RouteWaypoint] = Field(default_factory=list)


class RouteMetadata(BaseModel):
    total_pois: int
    generation_time_seconds: float
    cache_expires_utc: Optional[datetime] = None
    coordinate_precision: int = COORDINATE_PRECISION


class CreateRouteResponse(BaseModel):
    """Response model for route generation."""
    success: bool
    route_id: Optional[str] = None
    status: Optional[GenerationStatus] = None
    route: Optional[RouteBody] = None
    pois: Optional[list[ScoredPOI]] = None
    metadata: Optional[RouteMetadata] = None
    error: Optional[AppError] = None


class RouteStatusResponse(BaseModel):
    """Response model for progress polling."""
    success: bool
    route_id: Optional[str] = None
    status: Optional[GenerationStatus] = None
    progress: Optional[int] = None
    estimated_completion_seconds: Optional[int] = None
    partial_results: Optional[dict[str, bool]] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    error: Optional[AppError] = None


class CurrentLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ValidateLocationRequest(BaseModel):
    """Request model for on-route checks."""
    route_id: str = Field(..., min_length=1)
    current_location: CurrentLocation
    tolerance_meters: Optional[float] = Field(None, ge=0)


class ValidateLocationResponse(BaseModel):
    """Response model for on-route checks."""
    success: bool
    on_route: Optional[bool] = None
    distance_from_route_meters: Optional[float] = None
    nearest_point: Optional[LatLng] = None
    error: Optional[AppError] = None


# Service instance
_route_service: ScenicRouteService | None = None


def get_route_service() -> ScenicRouteService:
    global _route_service
    if _route_service is None:
        _route_service = create_route_service(get_settings())
    return _route_service


async def close_route_service() -> None:
    global _route_service
    if _route_service is not None:
        await _route_service.close()
        _route_service = None


def _round_point(point: LatLng) -> LatLng:
    return (round(point[0], COORDINATE_PRECISION), round(point[1], COORDINATE_PRECISION))


def _route_body(variant: RouteVariant) -> RouteBody:
    return RouteBody(
        coordinates=[_round_point(p) for p in variant.path.coordinates],
        total_distance_meters=round(variant.total_distance_meters),
        estimated_time_seconds=round(variant.total_duration_seconds),
        time_increase_percent=variant.time_increase_percent,
        baseline_time_seconds=round(variant.baseline_duration_seconds),
        instructions=variant.instructions,
        waypoints=variant.waypoints,
    )


def _completed_response(result: GenerationResult) -> CreateRouteResponse:
    variant = result.variant
    return CreateRouteResponse(
        success=True,
        route_id=result.route_id,
        status=GenerationStatus.COMPLETED,
        route=_route_body(variant),
        pois=variant.pois,
        metadata=RouteMetadata(
            total_pois=len(variant.pois),
            generation_time_seconds=result.generation_time_seconds,
            cache_expires_utc=result.cache_expires_at,
        ),
    )


async def _run_in_background(
    service: ScenicRouteService,
    tracker: ProgressTracker,
    request: RouteRequest,
) -> None:
    try:
        await service.run(tracker, request)
    except ScenicRouteError as e:
        # Already recorded on the generation state
        logger.warning(f"[ROUTE] Background generation {tracker.route_id} failed: {e.message}")
    except Exception:
        logger.exception(f"[ROUTE] Background generation {tracker.route_id} crashed")


@router.post("/routes", response_model=CreateRouteResponse)
async def create_route(
    request: CreateRouteRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    wait: bool = True,
) -> CreateRouteResponse:
    """Generate a scenic route between two locations.

    With ``wait=false`` returns 202 and a ``route_id`` immediately; poll
    ``/routes/{route_id}/status`` for completion.
    """
    service = get_route_service()
    tracker: ProgressTracker | None = None
    try:
        route_request = service.build_request(
            request.start_location, request.end_location, request.preferences
        )
        tracker = await service.begin(route_request)

        if not wait:
            background_tasks.add_task(_run_in_background, service, tracker, route_request)
            response.status_code = status.HTTP_202_ACCEPTED
            return CreateRouteResponse(
                success=True,
                route_id=tracker.route_id,
                status=GenerationStatus.PROCESSING,
            )

        result = await service.run(tracker, route_request)
        return _completed_response(result)

    except ScenicRouteError as e:
        response.status_code = e.status_code
        return CreateRouteResponse(
            success=False,
            route_id=tracker.route_id if tracker else None,
            status=GenerationStatus.FAILED if tracker else None,
            error=e.to_app_error(),
        )


@router.get("/routes/{route_id}/status", response_model=RouteStatusResponse)
async def get_route_status(route_id: str, response: Response) -> RouteStatusResponse:
    """Current progress of a route generation request."""
    try:
        state = await get_route_service().get_progress(route_id)
    except ScenicRouteError as e:
        response.status_code = e.status_code
        return RouteStatusResponse(success=False, route_id=route_id, error=e.to_app_error())

    return RouteStatusResponse(
        success=True,
        route_id=state.route_id,
        status=state.status,
        progress=state.progress,
        estimated_completion_seconds=estimated_completion_seconds(state),
        partial_results=partial_results(state),
        error_message=state.error_message,
        created_at=state.created_at,
        updated_at=state.updated_at,
    )


@router.post("/routes/validate-location", response_model=ValidateLocationResponse)
async def validate_location(
    request: ValidateLocationRequest,
    response: Response,
) -> ValidateLocationResponse:
    """Check whether the current location is within tolerance of a generated route."""
    point = Coordinates(
        lat=request.current_location.latitude,
        lng=request.current_location.longitude,
    )
    try:
        check = await get_route_service().validate_location_for_route(
            request.route_id, point, request.tolerance_meters
        )
    except ScenicRouteError as e:
        response.status_code = e.status_code
        return ValidateLocationResponse(success=False, error=e.to_app_error())

    return ValidateLocationResponse(
        success=True,
        on_route=check.on_route,
        distance_from_route_meters=round(check.distance_meters, 1),
        nearest_point=_round_point(check.nearest_point),
    )
