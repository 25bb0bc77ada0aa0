"""Unit tests for the encoded polyline codec."""

import pytest

from scenic_route.utils import polyline
from scenic_route.utils.polyline import DecodeError

GOOGLE_EXAMPLE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
GOOGLE_EXAMPLE_POINTS = [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


class TestDecode:
    """Tests for polyline.decode."""

    def test_known_example(self) -> None:
        assert polyline.decode(GOOGLE_EXAMPLE) == GOOGLE_EXAMPLE_POINTS

    def test_empty_string(self) -> None:
        assert polyline.decode("") == []

    def test_truncated_value(self) -> None:
        with pytest.raises(DecodeError):
            polyline.decode(GOOGLE_EXAMPLE[:-1] + "_")

    def test_latitude_without_longitude(self) -> None:
        with pytest.raises(DecodeError, match="longitude"):
            polyline.decode("_p~iF")

    def test_invalid_character(self) -> None:
        with pytest.raises(DecodeError, match="Invalid polyline character"):
            polyline.decode("_p~iF ps|U")

    def test_decode_error_is_value_error(self) -> None:
        assert issubclass(DecodeError, ValueError)


class TestEncode:
    """Tests for polyline.encode and combine."""

    def test_known_example(self) -> None:
        assert polyline.encode(GOOGLE_EXAMPLE_POINTS) == GOOGLE_EXAMPLE

    def test_empty(self) -> None:
        assert polyline.encode([]) == ""

    def test_roundtrip_on_grid(self) -> None:
        points = [
            (37.4419, -122.143),
            (37.40512, -122.08971),
            (37.3688, -122.0363),
            (-33.86882, 151.20929),
            (0.0, 0.0),
            (89.99999, -179.99999),
        ]
        assert polyline.decode(polyline.encode(points)) == points

    def test_combine_drops_repeated_joint(self) -> None:
        a, b, c = (37.4419, -122.143), (37.40512, -122.08971), (37.3688, -122.0363)
        combined = polyline.combine([polyline.encode([a, b]), polyline.encode([b, c])])
        assert polyline.decode(combined) == [a, b, c]

    def test_combine_single_and_empty(self) -> None:
        assert polyline.combine([]) == ""
        assert polyline.combine([GOOGLE_EXAMPLE]) == GOOGLE_EXAMPLE
