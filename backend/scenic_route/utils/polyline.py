"""Encoded polyline codec.

Implements the compact polyline format used by the Google Directions and
OSRM APIs: each coordinate is stored as the signed delta from the previous
one, at 1e-5 degree precision, split into 5-bit chunks offset by 63.

All points are ``(lat, lng)`` tuples.
"""

PRECISION = 1e5

LatLng = tuple[float, float]


class DecodeError(ValueError):
    """Raised when an encoded polyline is malformed."""


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    """Decode one signed delta starting at ``index``.

    Returns the delta and the index just past it.
    """
    shift = 0
    result = 0
    while True:
        if index >= len(encoded):
            raise DecodeError(f"Polyline ends in the middle of a value at offset {index}")
        b = ord(encoded[index]) - 63
        if b < 0 or b > 63:
            raise DecodeError(
                f"Invalid polyline character {encoded[index]!r} at offset {index}"
            )
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    return (~(result >> 1) if result & 1 else result >> 1), index


def decode(encoded: str) -> list[LatLng]:
    """Decode a polyline string into ``(lat, lng)`` points.

    An empty string decodes to an empty list.

    Raises:
        DecodeError: If the string is truncated or contains invalid characters.
    """
    if not encoded:
        return []

    points: list[LatLng] = []
    index = 0
    lat = 0
    lng = 0

    while index < len(encoded):
        d_lat, index = _decode_value(encoded, index)
        if index >= len(encoded):
            raise DecodeError("Polyline has a latitude without a matching longitude")
        d_lng, index = _decode_value(encoded, index)
        lat += d_lat
        lng += d_lng
        points.append((lat / PRECISION, lng / PRECISION))

    return points


def _encode_value(value: int, out: list[str]) -> None:
    value = ~(value << 1) if value < 0 else value << 1
    while value >= 0x20:
        out.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    out.append(chr(value + 63))


def encode(points: list[LatLng]) -> str:
    """Encode ``(lat, lng)`` points into a polyline string."""
    if not points:
        return ""

    result: list[str] = []
    prev_lat = 0
    prev_lng = 0

    for lat, lng in points:
        lat_int = int(round(lat * PRECISION))
        lng_int = int(round(lng * PRECISION))
        _encode_value(lat_int - prev_lat, result)
        _encode_value(lng_int - prev_lng, result)
        prev_lat = lat_int
        prev_lng = lng_int

    return "".join(result)


def combine(polylines: list[str]) -> str:
    """Join consecutive encoded legs into a single polyline.

    The first point of every leg after the first is dropped when it repeats
    the last point of the previous leg.
    """
    if not polylines:
        return ""
    if len(polylines) == 1:
        return polylines[0]

    all_points: list[LatLng] = []
    for polyline in polylines:
        points = decode(polyline)
        if all_points and points and points[0] == all_points[-1]:
            points = points[1:]
        all_points.extend(points)

    return encode(all_points)
