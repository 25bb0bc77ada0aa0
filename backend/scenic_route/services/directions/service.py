"""Directions: driving route between two points, optionally through waypoints.

Two providers:
- GoogleDirectionsService: Google Directions API (needs GOOGLE_MAPS_API_KEY)
- OSRMDirectionsService: Open Source Routing Machine (free, no key)

Both return a ``DirectionsResult`` with an encoded overview polyline, one leg
per stop-to-stop hop, and turn instructions normalized to a shared set of
maneuver names.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx

from scenic_route.config import Settings
from scenic_route.models import (
    Coordinates,
    NoViableRouteError,
    RouteInstruction,
    UpstreamUnavailableError,
)
from scenic_route.utils import polyline

logger = logging.getLogger(__name__)

# Google maneuver names -> normalized maneuver types
GOOGLE_MANEUVERS = {
    "turn-left": "turn_left",
    "turn-right": "turn_right",
    "turn-sharp-left": "turn_sharp_left",
    "turn-sharp-right": "turn_sharp_right",
    "turn-slight-left": "turn_slight_left",
    "turn-slight-right": "turn_slight_right",
    "straight": "continue_straight",
    "uturn-left": "u_turn",
    "uturn-right": "u_turn",
    "merge": "merge",
    "fork-left": "fork_left",
    "fork-right": "fork_right",
    "keep-left": "keep_left",
    "keep-right": "keep_right",
    "ramp-left": "ramp_left",
    "ramp-right": "ramp_right",
}

DEFAULT_MANEUVER = "continue_straight"

_HTML_TAG = re.compile(r"<[^>]*>")


@dataclass
class DirectionsLeg:
    """One stop-to-stop hop of a route."""
    distance_meters: float
    duration_seconds: float
    steps: list[RouteInstruction] = field(default_factory=list)


@dataclass
class DirectionsResult:
    """A route returned by a directions provider."""
    encoded_path: str
    legs: list[DirectionsLeg]

    @property
    def distance_meters(self) -> float:
        return sum(leg.distance_meters for leg in self.legs)

    @property
    def duration_seconds(self) -> float:
        return sum(leg.duration_seconds for leg in self.legs)

    @property
    def instructions(self) -> list[RouteInstruction]:
        return [step for leg in self.legs for step in leg.steps]

    def decode_path(self) -> list[tuple[float, float]]:
        return polyline.decode(self.encoded_path)


def _parse_or_raise(parse, data) -> DirectionsResult:
    """Run a provider parser; malformed payloads become upstream errors."""
    try:
        return parse(data)
    except (KeyError, TypeError, IndexError, AttributeError, ValueError) as e:
        raise UpstreamUnavailableError(
            f"Malformed directions response: {e.__class__.__name__}: {e}", service="directions"
        ) from e


def map_google_maneuver(maneuver: str | None) -> str:
    return GOOGLE_MANEUVERS.get(maneuver or "straight", DEFAULT_MANEUVER)


def map_osrm_maneuver(maneuver_type: str, modifier: str | None) -> str:
    """Map an OSRM maneuver type/modifier pair to a normalized maneuver."""
    modifier = (modifier or "").replace(" ", "_")
    if modifier == "uturn":
        return "u_turn"
    if maneuver_type == "merge":
        return "merge"
    side = "left" if "left" in modifier else "right" if "right" in modifier else None
    if maneuver_type == "fork" and side:
        return f"fork_{side}"
    if maneuver_type in ("on ramp", "off ramp") and side:
        return f"ramp_{side}"
    if maneuver_type in ("turn", "end of road") and side:
        return f"turn_{modifier}"
    if maneuver_type in ("continue", "new name") and modifier.startswith("slight_") and side:
        return f"keep_{side}"
    return DEFAULT_MANEUVER


class DirectionsService(ABC):
    """Abstract base class for directions providers."""

    @abstractmethod
    async def get_directions(
        self,
        origin: Coordinates,
        destination: Coordinates,
        waypoints: list[Coordinates] | None = None,
    ) -> DirectionsResult:
        """Get a driving route from origin to destination through waypoints in order.

        Raises:
            NoViableRouteError: The provider found no route.
            UpstreamUnavailableError: On transport or provider errors.
        """
        pass

    async def close(self) -> None:
        pass  # No persistent client to close


class GoogleDirectionsService(DirectionsService):
    """Google Directions API client."""

    DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

    NO_ROUTE_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}

    def __init__(self, api_key: str, timeout: float = 15.0) -> None:
        if not api_key:
            raise ValueError("Google Directions requires an API key")
        self._api_key = api_key
        self._timeout = timeout

    async def get_directions(
        self,
        origin: Coordinates,
        destination: Coordinates,
        waypoints: list[Coordinates] | None = None,
    ) -> DirectionsResult:
        params = {
            "origin": f"{origin.lat},{origin.lng}",
            "destination": f"{destination.lat},{destination.lng}",
            "mode": "driving",
            "key": self._api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(f"{w.lat},{w.lng}" for w in waypoints)

        logger.info(f"[ROUTE] Google directions request: {len(waypoints or [])} waypoints")
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self.DIRECTIONS_URL, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableError(f"Directions request failed: {e}", service="directions") from e

        return _parse_or_raise(self.parse_response, data)

    @classmethod
    def parse_response(cls, data: dict) -> DirectionsResult:
        status = data.get("status")
        if status in cls.NO_ROUTE_STATUSES or (status == "OK" and not data.get("routes")):
            raise NoViableRouteError(f"Directions returned no route (status {status})")
        if status != "OK":
            raise UpstreamUnavailableError(
                f"Directions returned status {status}: {data.get('error_message', '')}".strip(),
                service="directions",
            )

        route = data["routes"][0]
        legs = [
            DirectionsLeg(
                distance_meters=leg["distance"]["value"],
                duration_seconds=leg["duration"]["value"],
                steps=[cls._parse_step(step) for step in leg.get("steps", [])],
            )
            for leg in route.get("legs", [])
        ]
        encoded_path = route.get("overview_polyline", {}).get("points", "")
        if not encoded_path:
            # No overview: stitch the per-step geometries
            encoded_path = polyline.combine([
                step["polyline"]["points"]
                for leg in route.get("legs", [])
                for step in leg.get("steps", [])
                if step.get("polyline")
            ])
        return DirectionsResult(encoded_path=encoded_path, legs=legs)

    @staticmethod
    def _parse_step(step: dict) -> RouteInstruction:
        start = step["start_location"]
        return RouteInstruction(
            instruction=_HTML_TAG.sub("", step.get("html_instructions", "")),
            distance_meters=step.get("distance", {}).get("value", 0),
            coordinate=(start["lat"], start["lng"]),
            maneuver_type=map_google_maneuver(step.get("maneuver")),
        )


class OSRMDirectionsService(DirectionsService):
    """OSRM-based directions (public demo server by default)."""

    OSRM_URL = "https://router.project-osrm.org"

    def __init__(self, timeout: float = 15.0, base_url: str | None = None) -> None:
        self._timeout = timeout
        self._base_url = base_url or self.OSRM_URL

    async def get_directions(
        self,
        origin: Coordinates,
        destination: Coordinates,
        waypoints: list[Coordinates] | None = None,
    ) -> DirectionsResult:
        stops = [origin, *(waypoints or []), destination]
        # OSRM wants lng,lat
        coords = ";".join(f"{c.lng},{c.lat}" for c in stops)
        url = f"{self._base_url}/route/v1/driving/{coords}"
        logger.info(f"[ROUTE] OSRM request: {len(stops)} stops")

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, params={
                    "overview": "full",
                    "geometries": "polyline",
                    "steps": "true",
                })
                # OSRM answers NoRoute with a 400 and a JSON body
                if response.status_code == 400:
                    data = response.json()
                else:
                    response.raise_for_status()
                    data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableError(f"OSRM request failed: {e}", service="directions") from e

        return _parse_or_raise(self.parse_response, data)

    @classmethod
    def parse_response(cls, data: dict) -> DirectionsResult:
        code = data.get("code")
        if code in ("NoRoute", "NoSegment") or (code == "Ok" and not data.get("routes")):
            raise NoViableRouteError(f"OSRM returned no route ({code})")
        if code != "Ok":
            raise UpstreamUnavailableError(
                f"OSRM returned {code}: {data.get('message', '')}".strip(),
                service="directions",
            )

        route = data["routes"][0]
        legs = [
            DirectionsLeg(
                distance_meters=leg.get("distance", 0),
                duration_seconds=leg.get("duration", 0),
                steps=[cls._parse_step(step) for step in leg.get("steps", [])],
            )
            for leg in route.get("legs", [])
        ]
        logger.info(
            f"[ROUTE] OSRM success: distance={route.get('distance', 0):.0f}m, "
            f"duration={route.get('duration', 0):.0f}s"
        )
        encoded_path = route.get("geometry") or polyline.combine([
            step["geometry"]
            for leg in route.get("legs", [])
            for step in leg.get("steps", [])
            if isinstance(step.get("geometry"), str)
        ])
        return DirectionsResult(encoded_path=encoded_path, legs=legs)

    @staticmethod
    def _parse_step(step: dict) -> RouteInstruction:
        maneuver = step.get("maneuver", {})
        lng, lat = maneuver.get("location", [0.0, 0.0])
        maneuver_type = maneuver.get("type", "continue")
        modifier = maneuver.get("modifier")
        return RouteInstruction(
            instruction=_osrm_instruction_text(maneuver_type, modifier, step.get("name", "")),
            distance_meters=step.get("distance", 0),
            coordinate=(lat, lng),
            maneuver_type=map_osrm_maneuver(maneuver_type, modifier),
        )


def _osrm_instruction_text(maneuver_type: str, modifier: str | None, road: str) -> str:
    """Build a readable instruction; OSRM only returns structured maneuvers."""
    if maneuver_type == "depart":
        text = "Head out"
    elif maneuver_type == "arrive":
        return "Arrive at your destination" if not road else f"Arrive at {road}"
    elif maneuver_type in ("roundabout", "rotary"):
        text = "Enter the roundabout"
    elif modifier == "uturn":
        text = "Make a U-turn"
    elif maneuver_type in ("turn", "end of road", "fork", "on ramp", "off ramp") and modifier:
        text = f"Turn {modifier}" if maneuver_type != "fork" else f"Keep {modifier} at the fork"
    elif maneuver_type == "merge":
        text = "Merge"
    else:
        text = "Continue"
    return f"{text} onto {road}" if road else text


def create_directions_service(settings: Settings) -> DirectionsService:
    """Google when a key is configured, OSRM otherwise."""
    if settings.google_maps_api_key:
        logger.info("[ROUTE] Using Google Directions API")
        return GoogleDirectionsService(settings.google_maps_api_key, settings.http_timeout_seconds)
    logger.info("[ROUTE] No Google key, using OSRM")
    return OSRMDirectionsService(settings.http_timeout_seconds)
