"""Geographic helpers: great-circle distances and point-to-path projection.

All points are ``(lat, lng)`` tuples in decimal degrees.

Point-to-path distance projects the query point onto every path segment in a
local equirectangular frame centred on the query point (longitude scaled by
``cos(lat)``), then measures the great-circle distance to the best projected
point. This is a planar approximation: for segments under ~200 m at
mid-latitudes the error stays below a meter; it grows with segment length
and towards the poles.
"""

import math
from dataclasses import dataclass

import numpy as np

from scenic_route.models import LocationCheck

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE = math.radians(1.0) * EARTH_RADIUS_M

DEFAULT_ON_ROUTE_TOLERANCE_M = 200.0

LatLng = tuple[float, float]


@dataclass(frozen=True)
class PathProjection:
    """Nearest point on a path to some query point."""
    distance_meters: float
    nearest_point: LatLng
    segment_index: int


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometers."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a))) / 1000


def haversine_meters(a: LatLng, b: LatLng) -> float:
    """Great-circle distance between two ``(lat, lng)`` points in meters."""
    return haversine_distance(a[0], a[1], b[0], b[1]) * 1000


def path_length_meters(path: list[LatLng]) -> float:
    """Sum of great-circle segment lengths along ``path``."""
    if len(path) < 2:
        return 0.0
    pts = np.radians(np.asarray(path, dtype=np.float64))
    lat1, lng1 = pts[:-1, 0], pts[:-1, 1]
    lat2, lng2 = pts[1:, 0], pts[1:, 1]
    a = (
        np.sin((lat2 - lat1) / 2) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2
    )
    segments = 2 * EARTH_RADIUS_M * np.arcsin(np.minimum(1.0, np.sqrt(a)))
    return float(segments.sum())


def _normalize_lng(lng: float) -> float:
    if -180.0 <= lng <= 180.0:
        return lng
    return (lng + 180.0) % 360.0 - 180.0


def point_to_path_distance(point: LatLng, path: list[LatLng]) -> PathProjection:
    """Minimum distance from ``point`` to any segment of ``path``.

    Raises:
        ValueError: If ``path`` is empty.
    """
    if not path:
        raise ValueError("path must contain at least one point")

    if len(path) == 1:
        nearest = (path[0][0], path[0][1])
        return PathProjection(haversine_meters(point, nearest), nearest, 0)

    lat0, lng0 = point
    cos_lat = math.cos(math.radians(lat0))
    pts = np.asarray(path, dtype=np.float64)

    # Local frame in meters, origin at the query point
    d_lng = (pts[:, 1] - lng0 + 180.0) % 360.0 - 180.0
    x = d_lng * cos_lat * METERS_PER_DEGREE
    y = (pts[:, 0] - lat0) * METERS_PER_DEGREE

    ax, ay = x[:-1], y[:-1]
    dx, dy = x[1:] - ax, y[1:] - ay
    seg_len_sq = dx * dx + dy * dy

    # Parameter of the foot of the perpendicular from the origin, clamped
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(seg_len_sq > 0, -(ax * dx + ay * dy) / seg_len_sq, 0.0)
    t = np.clip(t, 0.0, 1.0)
    px = ax + t * dx
    py = ay + t * dy

    best = int(np.argmin(np.hypot(px, py)))

    near_lat = lat0 + py[best] / METERS_PER_DEGREE
    if cos_lat > 1e-12:
        near_lng = _normalize_lng(lng0 + px[best] / (METERS_PER_DEGREE * cos_lat))
    else:
        near_lng = float(pts[best, 1])
    nearest = (float(near_lat), float(near_lng))

    return PathProjection(
        distance_meters=haversine_meters(point, nearest),
        nearest_point=nearest,
        segment_index=best,
    )


def is_on_route(
    point: LatLng,
    path: list[LatLng],
    tolerance_meters: float = DEFAULT_ON_ROUTE_TOLERANCE_M,
) -> LocationCheck:
    """Check whether ``point`` lies within ``tolerance_meters`` of ``path``."""
    if tolerance_meters < 0:
        raise ValueError("tolerance_meters must be non-negative")
    projection = point_to_path_distance(point, path)
    return LocationCheck(
        on_route=projection.distance_meters <= tolerance_meters,
        distance_meters=projection.distance_meters,
        nearest_point=projection.nearest_point,
    )


def sample_indices(length: int, samples: int) -> list[int]:
    """Pick up to ``samples`` indices evenly spaced by index over ``length`` points.

    Spacing is by vertex index, not by distance, so regions with dense
    vertices (city streets, curves) are sampled more often than long
    straight stretches.
    """
    if length <= 0 or samples <= 0:
        return []
    if length <= samples:
        return list(range(length))
    if samples == 1:
        return [0]
    step = (length - 1) / (samples - 1)
    return sorted({int(round(i * step)) for i in range(samples)})
