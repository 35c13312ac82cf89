"""Unit tests for geometry utilities."""

from datetime import datetime, timedelta, timezone

import h3
import pytest

from app.core.exceptions import InvalidInputError
from app.schemas.geo import Coordinate, TimeWindow
from app.utils.geometry import (
    decode_polyline,
    degree_distance,
    distance_km,
    encode_polyline,
    h3_cell,
    midpoint,
    path_distance_km,
    simplify_path,
    to_geojson_linestring,
)

# Reference example from the Google polyline algorithm documentation
GOOGLE_POINTS = [
    Coordinate(lat=38.5, lng=-120.2),
    Coordinate(lat=40.7, lng=-120.95),
    Coordinate(lat=43.252, lng=-126.453),
]
GOOGLE_ENCODED = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def test_distance_km():
    """Test Haversine distance calculation."""
    a = Coordinate(lat=0.0, lng=0.0)
    assert distance_km(a, a) == 0.0

    # One degree of longitude on the equator
    assert distance_km(a, Coordinate(lat=0.0, lng=1.0)) == pytest.approx(111.19, abs=0.01)

    origin = Coordinate(lat=28.61, lng=77.20)
    destination = Coordinate(lat=28.70, lng=77.30)
    assert distance_km(origin, destination) == pytest.approx(13.98, abs=0.01)
    assert distance_km(origin, destination) == pytest.approx(distance_km(destination, origin))


def test_path_distance_km():
    """Path distance is the sum of its legs."""
    a = Coordinate(lat=28.61, lng=77.20)
    b = Coordinate(lat=28.65, lng=77.25)
    c = Coordinate(lat=28.70, lng=77.30)

    assert path_distance_km([a, b, c]) == pytest.approx(distance_km(a, b) + distance_km(b, c))
    assert path_distance_km([a, b, c]) >= distance_km(a, c)
    assert path_distance_km([a]) == 0.0


def test_degree_distance_and_midpoint():
    """Planar helpers work in raw degrees."""
    a = Coordinate(lat=0.0, lng=0.0)
    b = Coordinate(lat=3.0, lng=4.0)

    assert degree_distance(a, b) == pytest.approx(5.0)
    assert midpoint(a, b) == Coordinate(lat=1.5, lng=2.0)


def test_encode_polyline():
    """Test encoding against the reference example."""
    assert encode_polyline(GOOGLE_POINTS) == GOOGLE_ENCODED
    assert encode_polyline([]) == ""


def test_decode_polyline():
    """Test decoding against the reference example."""
    points = decode_polyline(GOOGLE_ENCODED)

    assert len(points) == 3
    for decoded, expected in zip(points, GOOGLE_POINTS):
        assert decoded.lat == pytest.approx(expected.lat)
        assert decoded.lng == pytest.approx(expected.lng)

    assert decode_polyline("") == []


def test_decode_polyline_rejects_malformed_input():
    """Truncated strings and invalid characters raise."""
    with pytest.raises(InvalidInputError):
        decode_polyline("_p~iF")  # latitude without longitude

    with pytest.raises(InvalidInputError):
        decode_polyline("_p~iF~ps|U_")  # continuation bit on the last char

    with pytest.raises(InvalidInputError):
        decode_polyline("_p~iF ps|U")


def test_to_geojson_linestring():
    """GeoJSON uses [lng, lat] ordering."""
    geometry = to_geojson_linestring(
        [Coordinate(lat=28.61, lng=77.20), Coordinate(lat=28.70, lng=77.30)]
    )

    assert geometry["type"] == "LineString"
    assert list(geometry["coordinates"][0]) == [77.20, 28.61]
    assert list(geometry["coordinates"][1]) == [77.30, 28.70]


def test_to_geojson_linestring_needs_two_points():
    """A single point is not a route."""
    with pytest.raises(InvalidInputError):
        to_geojson_linestring([Coordinate(lat=28.61, lng=77.20)])


def test_simplify_path():
    """Long paths are reduced, endpoints kept."""
    points = [Coordinate(lat=28.6 + i * 0.001, lng=77.2 + (i % 2) * 0.0001) for i in range(300)]

    simplified = simplify_path(points, max_points=100)

    assert len(simplified) <= 100
    assert simplified[0] == points[0]
    assert simplified[-1] == points[-1]


def test_simplify_path_short_path_unchanged():
    """Paths under the limit are returned as-is."""
    points = [Coordinate(lat=28.61, lng=77.20), Coordinate(lat=28.70, lng=77.30)]
    assert simplify_path(points, max_points=100) == points


def test_h3_cell():
    """Demand zones are H3 cells at the requested resolution."""
    point = Coordinate(lat=28.6139, lng=77.2090)

    cell = h3_cell(point, 7)

    assert h3.is_valid_cell(cell)
    assert h3.get_resolution(cell) == 7
    assert h3.cell_to_parent(h3_cell(point, 9), 7) == cell
    assert h3_cell(Coordinate(lat=28.70, lng=77.30), 7) != cell


def test_polyline_round_trip_within_precision():
    """Decoded points match the input to 1e-5 degrees, including negatives."""
    path = [
        Coordinate(lat=-33.868820, lng=151.209296),
        Coordinate(lat=-33.870001, lng=151.2081),
        Coordinate(lat=51.507351, lng=-0.127758),
    ]

    decoded = decode_polyline(encode_polyline(path))

    assert len(decoded) == len(path)
    for got, expected in zip(decoded, path):
        assert got.lat == pytest.approx(expected.lat, abs=1e-5)
        assert got.lng == pytest.approx(expected.lng, abs=1e-5)


def test_time_window_reconciles_timezones():
    """The naive end of a mixed window is treated as UTC."""
    aware = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
    naive = datetime(2026, 3, 2, 9, 0)

    window = TimeWindow(start=aware, end=naive)
    assert window.end == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    assert window.start < window.end

    plus_three = timezone(timedelta(hours=3))
    reversed_aware = TimeWindow(start=naive, end=datetime(2026, 3, 2, 10, 0, tzinfo=plus_three))
    assert reversed_aware.end == datetime(2026, 3, 2, 7, 0)
    assert reversed_aware.start > reversed_aware.end

    both_naive = TimeWindow(start=naive, end=naive)
    assert both_naive.end.tzinfo is None
