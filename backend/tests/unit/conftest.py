import os
import sys
from pathlib import Path

# Keyless providers unless a test opts in
os.environ.pop("GOOGLE_MAPS_API_KEY", None)
os.environ.pop("GOOGLE_PLACES_API_KEY", None)
os.environ.pop("REDIS_URL", None)

UNIT_DIR = Path(__file__).resolve().parent
if str(UNIT_DIR) not in sys.path:
    sys.path.insert(0, str(UNIT_DIR))

import pytest

from scenic_route.models import Coordinates, RoutePath, RouteVariant
from scenic_route.services.store import InMemoryRouteStore


@pytest.fixture
def store() -> InMemoryRouteStore:
    return InMemoryRouteStore()


@pytest.fixture
def simple_variant() -> RouteVariant:
    start = Coordinates(lat=37.4419, lng=-122.1430)
    end = Coordinates(lat=37.3688, lng=-122.0363)
    return RouteVariant(
        path=RoutePath(
            coordinates=(start.as_tuple(), end.as_tuple()),
            distance_meters=12500.0,
            duration_seconds=1080.0,
        ),
        total_distance_meters=12500.0,
        total_duration_seconds=1080.0,
        baseline_duration_seconds=1080.0,
        time_increase_percent=0.0,
    )
