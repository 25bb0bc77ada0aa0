"""Unit tests for directions response parsing and provider selection."""

import httpx
import pytest

from fakes import html_page, serve_http
from scenic_route.config import Settings
from scenic_route.models import Coordinates, NoViableRouteError, UpstreamUnavailableError
from scenic_route.services.directions import (
    GoogleDirectionsService,
    OSRMDirectionsService,
    create_directions_service,
    map_google_maneuver,
    map_osrm_maneuver,
)
from scenic_route.utils import polyline

GOOGLE_OK = {
    "status": "OK",
    "routes": [{
        "overview_polyline": {"points": "_p~iF~ps|U_ulLnnqC_mqNvxq`@"},
        "legs": [
            {
                "distance": {"value": 5200},
                "duration": {"value": 480},
                "steps": [
                    {
                        "html_instructions": "Head <b>south</b> on <b>Alma St</b>",
                        "distance": {"value": 300},
                        "start_location": {"lat": 37.4419, "lng": -122.143},
                    },
                    {
                        "html_instructions": "Turn <b>left</b> onto <div>University Ave</div>",
                        "distance": {"value": 4900},
                        "start_location": {"lat": 37.44, "lng": -122.14},
                        "maneuver": "turn-left",
                    },
                ],
            },
            {
                "distance": {"value": 7300},
                "duration": {"value": 600},
                "steps": [],
            },
        ],
    }],
}

OSRM_OK = {
    "code": "Ok",
    "routes": [{
        "geometry": "_p~iF~ps|U_ulLnnqC_mqNvxq`@",
        "distance": 12500.0,
        "duration": 1080.0,
        "legs": [{
            "distance": 12500.0,
            "duration": 1080.0,
            "steps": [
                {
                    "name": "Alma Street",
                    "distance": 300.0,
                    "maneuver": {"type": "depart", "location": [-122.143, 37.4419]},
                },
                {
                    "name": "El Camino Real",
                    "distance": 12200.0,
                    "maneuver": {"type": "turn", "modifier": "slight right", "location": [-122.14, 37.44]},
                },
                {
                    "name": "",
                    "distance": 0.0,
                    "maneuver": {"type": "arrive", "location": [-122.0363, 37.3688]},
                },
            ],
        }],
    }],
}


class TestGoogleDirectionsParsing:
    """Tests for GoogleDirectionsService.parse_response."""

    def test_ok(self) -> None:
        result = GoogleDirectionsService.parse_response(GOOGLE_OK)
        assert result.distance_meters == 12500
        assert result.duration_seconds == 1080
        assert len(result.legs) == 2
        assert result.decode_path()[0] == (38.5, -120.2)

    def test_instructions_are_plain_text(self) -> None:
        instructions = GoogleDirectionsService.parse_response(GOOGLE_OK).instructions
        assert [i.instruction for i in instructions] == [
            "Head south on Alma St",
            "Turn left onto University Ave",
        ]
        assert [i.maneuver_type for i in instructions] == ["continue_straight", "turn_left"]
        assert instructions[0].coordinate == (37.4419, -122.143)

    @pytest.mark.parametrize("status", ["ZERO_RESULTS", "NOT_FOUND"])
    def test_no_route(self, status: str) -> None:
        with pytest.raises(NoViableRouteError):
            GoogleDirectionsService.parse_response({"status": status, "routes": []})

    def test_ok_without_routes(self) -> None:
        with pytest.raises(NoViableRouteError):
            GoogleDirectionsService.parse_response({"status": "OK", "routes": []})

    def test_provider_error(self) -> None:
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            GoogleDirectionsService.parse_response({"status": "REQUEST_DENIED", "error_message": "bad key"})
        assert "bad key" in exc_info.value.message
        assert exc_info.value.service == "directions"

    def test_requires_key(self) -> None:
        with pytest.raises(ValueError):
            GoogleDirectionsService("")


class TestOSRMParsing:
    """Tests for OSRMDirectionsService.parse_response."""

    def test_ok(self) -> None:
        result = OSRMDirectionsService.parse_response(OSRM_OK)
        assert result.distance_meters == 12500
        assert result.duration_seconds == 1080
        assert len(result.decode_path()) == 3

    def test_steps(self) -> None:
        steps = OSRMDirectionsService.parse_response(OSRM_OK).instructions
        assert steps[0].instruction == "Head out onto Alma Street"
        # OSRM locations are [lng, lat]
        assert steps[0].coordinate == (37.4419, -122.143)
        assert steps[1].instruction == "Turn slight right onto El Camino Real"
        assert steps[1].maneuver_type == "turn_slight_right"
        assert steps[2].instruction == "Arrive at your destination"

    @pytest.mark.parametrize("code", ["NoRoute", "NoSegment"])
    def test_no_route(self, code: str) -> None:
        with pytest.raises(NoViableRouteError):
            OSRMDirectionsService.parse_response({"code": code, "message": "Impossible route"})

    def test_provider_error(self) -> None:
        with pytest.raises(UpstreamUnavailableError):
            OSRMDirectionsService.parse_response({"code": "TooBig", "message": "Too many coordinates"})


class TestManeuvers:
    def test_google(self) -> None:
        assert map_google_maneuver("turn-sharp-right") == "turn_sharp_right"
        assert map_google_maneuver("uturn-left") == "u_turn"
        assert map_google_maneuver(None) == "continue_straight"
        assert map_google_maneuver("roundabout-left") == "continue_straight"

    def test_osrm(self) -> None:
        assert map_osrm_maneuver("turn", "left") == "turn_left"
        assert map_osrm_maneuver("turn", "sharp right") == "turn_sharp_right"
        assert map_osrm_maneuver("continue", "uturn") == "u_turn"
        assert map_osrm_maneuver("fork", "slight left") == "fork_left"
        assert map_osrm_maneuver("off ramp", "right") == "ramp_right"
        assert map_osrm_maneuver("new name", "slight left") == "keep_left"
        assert map_osrm_maneuver("merge", "left") == "merge"
        assert map_osrm_maneuver("depart", None) == "continue_straight"


class TestCreateDirectionsService:
    def test_google_with_key(self) -> None:
        service = create_directions_service(Settings(google_maps_api_key="test-key"))
        assert isinstance(service, GoogleDirectionsService)

    def test_osrm_without_key(self) -> None:
        assert isinstance(create_directions_service(Settings()), OSRMDirectionsService)


class TestPathStitching:
    """Routes without an overview geometry fall back to the step geometries."""

    def test_google_steps(self) -> None:
        a, b, c = (37.44, -122.14), (37.42, -122.1), (37.37, -122.04)
        data = {
            "status": "OK",
            "routes": [{
                "legs": [{
                    "distance": {"value": 9000},
                    "duration": {"value": 700},
                    "steps": [
                        {"start_location": {"lat": a[0], "lng": a[1]}, "polyline": {"points": polyline.encode([a, b])}},
                        {"start_location": {"lat": b[0], "lng": b[1]}, "polyline": {"points": polyline.encode([b, c])}},
                    ],
                }],
            }],
        }
        assert GoogleDirectionsService.parse_response(data).decode_path() == [a, b, c]

    def test_osrm_steps(self) -> None:
        a, b, c = (37.44, -122.14), (37.42, -122.1), (37.37, -122.04)
        data = {
            "code": "Ok",
            "routes": [{
                "legs": [{
                    "distance": 9000.0,
                    "duration": 700.0,
                    "steps": [
                        {"geometry": polyline.encode([a, b]), "maneuver": {"type": "depart", "location": [a[1], a[0]]}},
                        {"geometry": polyline.encode([b, c]), "maneuver": {"type": "arrive", "location": [c[1], c[0]]}},
                    ],
                }],
            }],
        }
        assert OSRMDirectionsService.parse_response(data).decode_path() == [a, b, c]


class TestMalformedResponses:
    """Unreadable provider replies surface as upstream errors."""

    origin = Coordinates(lat=37.4419, lng=-122.143)
    destination = Coordinates(lat=37.3688, lng=-122.0363)

    @pytest.mark.asyncio
    async def test_google_html_body(self, monkeypatch) -> None:
        serve_http(monkeypatch, html_page)
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await GoogleDirectionsService("test-key").get_directions(self.origin, self.destination)
        assert exc_info.value.service == "directions"

    @pytest.mark.asyncio
    async def test_google_leg_missing_duration(self, monkeypatch) -> None:
        body = {"status": "OK", "routes": [{"legs": [{"distance": {"value": 100}, "steps": []}]}]}
        serve_http(monkeypatch, lambda request: httpx.Response(200, json=body))
        with pytest.raises(UpstreamUnavailableError):
            await GoogleDirectionsService("test-key").get_directions(self.origin, self.destination)

    @pytest.mark.asyncio
    async def test_osrm_html_body(self, monkeypatch) -> None:
        serve_http(monkeypatch, html_page)
        with pytest.raises(UpstreamUnavailableError):
            await OSRMDirectionsService().get_directions(self.origin, self.destination)
