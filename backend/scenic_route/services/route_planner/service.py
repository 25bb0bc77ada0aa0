"""Scenic route generation pipeline.

    start/end -> geocode -> baseline directions -> decode path        (40%)
              -> discover POIs -> score + rank + cap                  (70%)
              -> greedy variant selection -> completed                (100%)

Geocoding and baseline failures are fatal and surface as
``RouteGenerationFailed`` (or ``NoViableRouteError`` when the directions
service finds no route). Every fatal error marks the request ``failed``
before it propagates.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from scenic_route.config import Settings
from scenic_route.models import (
    Coordinates,
    ErrorCode,
    GenerationState,
    GenerationStatus,
    InvalidInputError,
    LocationCheck,
    LocationInput,
    NoViableRouteError,
    RouteGenerationFailed,
    RouteNotFoundError,
    RouteNotReadyError,
    RoutePreferences,
    RouteRequest,
    RouteVariant,
    ScenicRouteError,
    UpstreamUnavailableError,
)
from scenic_route.services.directions import DirectionsService, create_directions_service
from scenic_route.services.geocoding import GeocodingService, create_geocoding_service
from scenic_route.services.places import create_places_service
from scenic_route.services.poi_discovery import POIDiscoveryService, categories_for_interests
from scenic_route.services.poi_scorer import rank_pois, score_candidates
from scenic_route.services.progress import BASELINE_READY, POIS_READY, ProgressTracker
from scenic_route.services.store import RouteStore, create_route_store
from scenic_route.utils.cache import LRUCache
from scenic_route.utils.geo import DEFAULT_ON_ROUTE_TOLERANCE_M, is_on_route
from scenic_route.utils.polyline import DecodeError

from .selector import RouteVariantSelector

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """A completed generation."""
    route_id: str
    variant: RouteVariant
    generation_time_seconds: float
    cache_expires_at: datetime | None


class ScenicRouteService:
    """Entry point for route generation, progress lookup and on-route checks."""

    def __init__(
        self,
        geocoder: GeocodingService,
        directions: DirectionsService,
        discovery: POIDiscoveryService,
        store: RouteStore,
        max_candidates: int = 8,
        cache_ttl_seconds: int = 86400,
        on_route_tolerance_meters: float = DEFAULT_ON_ROUTE_TOLERANCE_M,
    ) -> None:
        self._geocoder = geocoder
        self._directions = directions
        self._discovery = discovery
        self._store = store
        self._selector = RouteVariantSelector(directions)
        self._max_candidates = max_candidates
        self._cache_ttl = cache_ttl_seconds
        self._tolerance = on_route_tolerance_meters
        # Finished states the store refused, served to pollers in its place
        self._unsaved = LRUCache(ttl_seconds=cache_ttl_seconds)

    async def close(self) -> None:
        await self._geocoder.close()
        await self._directions.close()
        await self._discovery.close()
        await self._store.close()

    # ── Route generation ──────────────────────────────────────────────

    @staticmethod
    def build_request(
        start: LocationInput | dict[str, Any],
        end: LocationInput | dict[str, Any],
        preferences: RoutePreferences | dict[str, Any] | None = None,
    ) -> RouteRequest:
        """Validate raw inputs into a RouteRequest.

        Raises:
            InvalidInputError: Malformed coordinates, missing locations or bad preferences.
        """
        try:
            return RouteRequest.model_validate({
                "start_location": start.model_dump() if isinstance(start, LocationInput) else start,
                "end_location": end.model_dump() if isinstance(end, LocationInput) else end,
                "preferences": (
                    preferences.model_dump()
                    if isinstance(preferences, RoutePreferences)
                    else preferences or {}
                ),
            })
        except ValidationError as e:
            raise InvalidInputError(
                "Invalid route request",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

    async def begin(self, request: RouteRequest, route_id: str | None = None) -> ProgressTracker:
        """Register a new request at the accepted checkpoint.

        Raises:
            UpstreamUnavailableError: The route store rejected the request.
        """
        tracker = await ProgressTracker.begin(self._store, route_id, self._cache_ttl)
        logger.info(
            f"[ROUTE] Accepted {tracker.route_id}: "
            f"{_describe(request.start_location)} -> {_describe(request.end_location)}"
        )
        return tracker

    async def generate_route(
        self,
        start: LocationInput | dict[str, Any],
        end: LocationInput | dict[str, Any],
        preferences: RoutePreferences | dict[str, Any] | None = None,
    ) -> GenerationResult:
        """Validate, register and run a route request to completion."""
        request = self.build_request(start, end, preferences)
        tracker = await self.begin(request)
        return await self.run(tracker, request)

    async def run(self, tracker: ProgressTracker, request: RouteRequest) -> GenerationResult:
        """Run the pipeline for an already registered request."""
        started = time.monotonic()
        prefs = request.preferences
        logger.info(f"[ROUTE] Generating route {tracker.route_id}")

        try:
            origin = await self._resolve(request.start_location, "start")
            destination = await self._resolve(request.end_location, "end")

            try:
                baseline = await self._directions.get_directions(origin, destination)
            except UpstreamUnavailableError as e:
                raise RouteGenerationFailed(f"Baseline route unavailable: {e.message}") from e

            baseline_path = baseline.decode_path()
            if not baseline_path:
                raise NoViableRouteError("Directions service returned an empty baseline path")
            logger.info(
                f"[ROUTE] Baseline: {len(baseline_path)} points, "
                f"{baseline.distance_meters:.0f}m, {baseline.duration_seconds:.0f}s"
            )
            await tracker.advance(BASELINE_READY)

            candidates = await self._discovery.discover(
                baseline_path, categories_for_interests(prefs.interests)
            )
            ranked = rank_pois(score_candidates(candidates, baseline_path))
            ranked = ranked[: self._max_candidates]
            logger.info(f"[POI] Kept {len(ranked)} of {len(candidates)} scored candidates")
            await tracker.advance(POIS_READY)

            variant = await self._selector.select(origin, destination, baseline, ranked, prefs)
            await tracker.complete(variant)

        except ScenicRouteError as e:
            await tracker.fail(e.message)
            raise
        except DecodeError as e:
            await tracker.fail(f"Malformed route geometry: {e}")
            raise RouteGenerationFailed(f"Malformed route geometry: {e}") from e
        except Exception as e:
            logger.exception(f"[ROUTE] Unexpected failure for {tracker.route_id}")
            await tracker.fail(str(e) or e.__class__.__name__)
            raise
        finally:
            if tracker.state.is_terminal and not tracker.persisted:
                self._unsaved.set(tracker.route_id, tracker.state.model_dump(mode="json"))

        elapsed = time.monotonic() - started
        logger.info(
            f"[ROUTE] {tracker.route_id} done in {elapsed:.1f}s: {len(variant.pois)} stops, "
            f"+{variant.time_increase_percent}%"
        )
        return GenerationResult(
            route_id=tracker.route_id,
            variant=variant,
            generation_time_seconds=round(elapsed, 3),
            cache_expires_at=tracker.state.cache_expires_at,
        )

    async def _resolve(self, location: LocationInput, label: str) -> Coordinates:
        """Coordinates win over the address; addresses are geocoded."""
        if location.coordinates is not None:
            return Coordinates.from_tuple(location.coordinates)

        try:
            coords = await self._geocoder.geocode(location.address or "")
        except UpstreamUnavailableError as e:
            raise RouteGenerationFailed(
                f"Unable to geocode {label} location: {e.message}",
                code=ErrorCode.GEOCODING_FAILED,
            ) from e
        if coords is None:
            raise RouteGenerationFailed(
                f"Unable to geocode {label} location {location.address!r}",
                code=ErrorCode.GEOCODING_FAILED,
                details={"suggestion": "Provide a valid address or coordinates"},
            )
        logger.info(f"[ROUTE] Geocoded {label}: ({coords.lat:.5f}, {coords.lng:.5f})")
        return coords

    # ── Status and on-route checks ────────────────────────────────────

    async def get_progress(self, route_id: str) -> GenerationState:
        unsaved = self._unsaved.get(route_id)
        if unsaved is not None:
            return GenerationState.model_validate(unsaved)
        try:
            state = await self._store.get_state(route_id)
        except Exception as e:
            raise UpstreamUnavailableError(f"Route store unavailable: {e}", service="store") from e
        if state is None:
            raise RouteNotFoundError(f"Route {route_id} not found")
        return state

    def validate_location(
        self,
        path: list[tuple[float, float]],
        point: Coordinates,
        tolerance_meters: float | None = None,
    ) -> LocationCheck:
        """Is ``point`` within tolerance of ``path``?"""
        if not path:
            raise InvalidInputError("Path must contain at least one point")
        tolerance = self._tolerance if tolerance_meters is None else tolerance_meters
        if tolerance < 0:
            raise InvalidInputError("tolerance_meters must be non-negative")
        return is_on_route(point.as_tuple(), path, tolerance)

    async def validate_location_for_route(
        self,
        route_id: str,
        point: Coordinates,
        tolerance_meters: float | None = None,
    ) -> LocationCheck:
        """On-route check against a stored, completed route."""
        state = await self.get_progress(route_id)
        if state.status != GenerationStatus.COMPLETED or state.variant is None:
            raise RouteNotReadyError(f"Route {route_id} is {state.status.value}")
        return self.validate_location(state.variant.path.points(), point, tolerance_meters)


def _describe(location: LocationInput) -> str:
    if location.coordinates is not None:
        lat, lng = location.coordinates
        return f"({lat:.5f}, {lng:.5f})"
    return repr(location.address)


def create_route_service(settings: Settings) -> ScenicRouteService:
    """Wire the pipeline from settings."""
    discovery = POIDiscoveryService(
        create_places_service(settings),
        sample_count=settings.poi_sample_count,
        radius_meters=settings.poi_search_radius_meters,
        per_sample_limit=settings.poi_results_per_sample,
        timeout=settings.http_timeout_seconds,
    )
    return ScenicRouteService(
        geocoder=create_geocoding_service(settings),
        directions=create_directions_service(settings),
        discovery=discovery,
        store=create_route_store(settings),
        max_candidates=settings.poi_max_candidates,
        cache_ttl_seconds=settings.route_cache_ttl_seconds,
        on_route_tolerance_meters=settings.on_route_tolerance_meters,
    )
