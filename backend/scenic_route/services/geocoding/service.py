"""Geocoding: free-form address to coordinates.

Two providers:
- GoogleGeocodingService: Google Geocoding API (needs GOOGLE_MAPS_API_KEY)
- NominatimGeocodingService: OpenStreetMap Nominatim (free, no key)
"""

import logging
from abc import ABC, abstractmethod

import httpx

from scenic_route.config import Settings
from scenic_route.models import Coordinates, UpstreamUnavailableError

logger = logging.getLogger(__name__)


class GeocodingService(ABC):
    """Abstract base class for geocoding."""

    @abstractmethod
    async def geocode(self, address: str) -> Coordinates | None:
        """Resolve an address.

        Returns:
            The coordinates, or None when the address matched nothing.

        Raises:
            UpstreamUnavailableError: On transport or provider errors.
        """
        pass

    async def close(self) -> None:
        pass  # No persistent client to close


def _parse_or_raise(parse, data, address: str) -> Coordinates | None:
    """Run a provider parser; malformed payloads become upstream errors."""
    try:
        return parse(data, address)
    except (KeyError, TypeError, IndexError, ValueError) as e:
        raise UpstreamUnavailableError(
            f"Malformed geocoding response: {e.__class__.__name__}: {e}", service="geocoding"
        ) from e


class GoogleGeocodingService(GeocodingService):
    """Google Geocoding API client."""

    GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, api_key: str, timeout: float = 15.0) -> None:
        if not api_key:
            raise ValueError("Google Geocoding requires an API key")
        self._api_key = api_key
        self._timeout = timeout

    async def geocode(self, address: str) -> Coordinates | None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    self.GEOCODE_URL, params={"address": address, "key": self._api_key}
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableError(f"Geocoding request failed: {e}", service="geocoding") from e

        return _parse_or_raise(self.parse_response, data, address)

    @staticmethod
    def parse_response(data: dict, address: str = "") -> Coordinates | None:
        status = data.get("status")
        if status == "ZERO_RESULTS":
            logger.info(f"[GEOCODE] No match for {address!r}")
            return None
        if status != "OK" or not data.get("results"):
            raise UpstreamUnavailableError(
                f"Geocoding returned status {status}: {data.get('error_message', '')}".strip(),
                service="geocoding",
            )
        location = data["results"][0]["geometry"]["location"]
        return Coordinates(lat=location["lat"], lng=location["lng"])


class NominatimGeocodingService(GeocodingService):
    """OpenStreetMap Nominatim client."""

    NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
    HEADERS = {"User-Agent": "ScenicRoute/1.0 (contact@scenicroute.app)"}

    def __init__(self, timeout: float = 15.0) -> None:
        self._timeout = timeout

    async def geocode(self, address: str) -> Coordinates | None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, headers=self.HEADERS) as client:
                response = await client.get(
                    self.NOMINATIM_URL,
                    params={"q": address, "format": "json", "limit": 1},
                )
                response.raise_for_status()
                results = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableError(f"Nominatim request failed: {e}", service="geocoding") from e

        return _parse_or_raise(self.parse_response, results, address)

    @staticmethod
    def parse_response(results: list, address: str = "") -> Coordinates | None:
        if not results:
            logger.info(f"[GEOCODE] Nominatim found nothing for {address!r}")
            return None
        # Nominatim returns lat/lon as strings
        return Coordinates(lat=float(results[0]["lat"]), lng=float(results[0]["lon"]))


def create_geocoding_service(settings: Settings) -> GeocodingService:
    """Google when a key is configured, Nominatim otherwise."""
    if settings.google_maps_api_key:
        logger.info("[GEOCODE] Using Google Geocoding API")
        return GoogleGeocodingService(settings.google_maps_api_key, settings.http_timeout_seconds)
    logger.info("[GEOCODE] No Google key, using Nominatim")
    return NominatimGeocodingService(settings.http_timeout_seconds)
