"""Runtime configuration loaded from environment variables.

Values are read once from the process environment (and a ``.env`` file when
present). Google API keys switch the external providers from the keyless
OpenStreetMap stack (Nominatim, OSRM, Overpass) to Google Maps Platform.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _env_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings."""

    google_maps_api_key: str | None = None
    google_places_api_key: str | None = None
    redis_url: str | None = None

    http_timeout_seconds: float = 15.0
    poi_search_radius_meters: int = 5000
    poi_sample_count: int = 5
    poi_results_per_sample: int = 10
    poi_max_candidates: int = 8
    route_cache_ttl_seconds: int = 86400
    on_route_tolerance_meters: float = 200.0

    log_level: str = "INFO"
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    def __post_init__(self) -> None:
        if not 2000 <= self.poi_search_radius_meters <= 5000:
            raise ValueError("POI_SEARCH_RADIUS_METERS must be between 2000 and 5000")
        if self.poi_sample_count < 1:
            raise ValueError("POI_SAMPLE_COUNT must be at least 1")
        if self.http_timeout_seconds <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be positive")

    @property
    def places_api_key(self) -> str | None:
        return self.google_places_api_key or self.google_maps_api_key

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY") or None,
            google_places_api_key=os.getenv("GOOGLE_PLACES_API_KEY") or None,
            redis_url=os.getenv("REDIS_URL") or None,
            http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", 15.0),
            poi_search_radius_meters=_env_int("POI_SEARCH_RADIUS_METERS", 5000),
            poi_sample_count=_env_int("POI_SAMPLE_COUNT", 5),
            poi_results_per_sample=_env_int("POI_RESULTS_PER_SAMPLE", 10),
            poi_max_candidates=_env_int("POI_MAX_CANDIDATES", 8),
            route_cache_ttl_seconds=_env_int("ROUTE_CACHE_TTL_SECONDS", 86400),
            on_route_tolerance_meters=_env_float("ON_ROUTE_TOLERANCE_METERS", 200.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=_env_list(
                "CORS_ORIGINS", ["http://localhost:3000", "http://localhost:5173"]
            ),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
