"""RideWise Geometry Utilities.

Great-circle distances, planar degree distances, and encoding of coordinate
paths. Paths are exchanged with the directions provider as Google encoded
polylines and returned to clients as GeoJSON LineStrings.
"""

import logging
import math
from typing import List, Sequence

import h3
from shapely.geometry import LineString, Point, mapping

from app.core.exceptions import InvalidInputError
from app.schemas.geo import Coordinate

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
POLYLINE_PRECISION = 1e5


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between two coordinates.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Great-circle distance in kilometres
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def path_distance_km(points: Sequence[Coordinate]) -> float:
    """Sum of consecutive Haversine legs along a path."""
    return sum(distance_km(points[i], points[i + 1]) for i in range(len(points) - 1))


def degree_distance(a: Coordinate, b: Coordinate) -> float:
    """Planar Euclidean distance in degrees.

    Only meaningful as a rough complexity proxy over short distances.
    """
    return Point(a.lng, a.lat).distance(Point(b.lng, b.lat))


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    """Arithmetic midpoint of two coordinates."""
    return Coordinate(lat=(a.lat + b.lat) / 2, lng=(a.lng + b.lng) / 2)


def _encode_value(value: int) -> str:
    # Zig-zag sign, then 5-bit chunks low to high with 0x20 as continuation
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode_polyline(points: Sequence[Coordinate]) -> str:
    """Encode a path using the Google polyline algorithm.

    Args:
        points: Coordinates in travel order

    Returns:
        Encoded polyline string (1e-5 degree precision)
    """
    encoded = []
    prev_lat = prev_lng = 0
    for point in points:
        lat = int(round(point.lat * POLYLINE_PRECISION))
        lng = int(round(point.lng * POLYLINE_PRECISION))
        encoded.append(_encode_value(lat - prev_lat))
        encoded.append(_encode_value(lng - prev_lng))
        prev_lat, prev_lng = lat, lng
    return "".join(encoded)


def decode_polyline(encoded: str) -> List[Coordinate]:
    """Decode a Google encoded polyline.

    Args:
        encoded: Polyline string as returned by the directions provider

    Returns:
        Coordinates in travel order

    Raises:
        InvalidInputError: String is truncated or contains invalid characters
    """
    points: List[Coordinate] = []
    index = 0
    lat = lng = 0
    length = len(encoded)

    def next_value() -> int:
        nonlocal index
        shift = result = 0
        while True:
            if index >= length:
                raise InvalidInputError("Truncated polyline")
            b = ord(encoded[index]) - 63
            index += 1
            if b < 0 or b > 0x3F:
                raise InvalidInputError(f"Invalid polyline character at position {index - 1}")
            result |= (b & 0x1F) << shift
            shift += 5
            if b < 0x20:
                break
        return ~(result >> 1) if result & 1 else result >> 1

    while index < length:
        lat += next_value()
        lng += next_value()
        points.append(Coordinate(lat=lat / POLYLINE_PRECISION, lng=lng / POLYLINE_PRECISION))

    return points


def to_geojson_linestring(points: Sequence[Coordinate]) -> dict:
    """Convert a path to a GeoJSON LineString geometry ([lng, lat] order)."""
    if len(points) < 2:
        raise InvalidInputError("A route needs at least two points")
    return dict(mapping(LineString([(p.lng, p.lat) for p in points])))


def simplify_path(points: Sequence[Coordinate], max_points: int = 100) -> List[Coordinate]:
    """Simplify a path to have at most max_points using Douglas-Peucker.

    Args:
        points: Path coordinates
        max_points: Maximum number of points to keep

    Returns:
        Simplified path; the original points if already short enough
    """
    if len(points) <= max_points:
        return list(points)

    line = LineString([(p.lng, p.lat) for p in points])
    tolerance = line.length / (max_points * 10)
    simplified = line.simplify(tolerance, preserve_topology=True)

    while len(simplified.coords) > max_points:
        tolerance *= 1.5
        simplified = line.simplify(tolerance, preserve_topology=True)

    logger.debug(f"Simplified path from {len(points)} to {len(simplified.coords)} points")
    return [Coordinate(lat=lat, lng=lng) for lng, lat in simplified.coords]


def h3_cell(point: Coordinate, resolution: int) -> str:
    """H3 hexagon containing the point, used as the demand zone id."""
    return h3.latlng_to_cell(point.lat, point.lng, resolution)
