"""Route optimisation service.

Fallback routing used when the directions provider is unavailable: straight
legs through the given waypoints, a traffic-adjusted travel time, and a simple
complexity-based safety score. Also generates perturbed alternatives, scores
routes against distance/time ceilings, and validates real-time update entries.
"""

import logging
import random
from datetime import datetime
from typing import List, Optional, Sequence

from app.config import ROUTE_SCORE_WEIGHTS, get_settings
from app.core.exceptions import InvalidInputError
from app.schemas.geo import Coordinate
from app.schemas.route import RealTimeUpdate, RouteOption
from app.utils.geometry import midpoint, path_distance_km
from app.utils.scoring import clamp, round_half_up, round_score

logger = logging.getLogger(__name__)


def wrap_longitude(lng: float) -> float:
    """Wrap a longitude into [-180, 180]."""
    if -180.0 <= lng <= 180.0:
        return lng
    return (lng + 180.0) % 360.0 - 180.0


class RouteOptimizationService:
    """Builds, ranks and scores candidate routes."""

    def __init__(self, rng: Optional[random.Random] = None):
        settings = get_settings()
        self.rng = rng or random.Random()
        self.default_traffic_factor = settings.DEFAULT_TRAFFIC_FACTOR
        self.base_speed_kmh = settings.BASE_SPEED_KMH
        self.jitter_deg = settings.ALTERNATIVE_JITTER_DEG
        self.max_distance_km = settings.MAX_ROUTE_DISTANCE_KM
        self.max_time_min = settings.MAX_ROUTE_TIME_MIN

    def optimize_route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: Optional[Sequence[Coordinate]] = None,
        traffic_factor: Optional[float] = None,
    ) -> RouteOption:
        """Build a route through the waypoints with travel estimates.

        Args:
            origin: Start of the trip
            destination: End of the trip
            waypoints: Intermediate stops, visited in order
            traffic_factor: 0 (free flow) to 1 (gridlock); default when None

        Returns:
            RouteOption with distance (km) and time (minutes) to 2 decimals
        """
        waypoints = list(waypoints or [])
        if traffic_factor is None:
            traffic_factor = self.default_traffic_factor
        if not 0.0 <= traffic_factor <= 1.0:
            raise InvalidInputError("Traffic factor must be between 0 and 1")

        points = [origin, *waypoints, destination]
        distance = path_distance_km(points)

        # Heavy traffic halves the average speed
        adjusted_speed = self.base_speed_kmh * (1 - traffic_factor * 0.5)
        estimated_time = distance / adjusted_speed * 60

        route_complexity = len(waypoints) * 0.1
        safety_score = max(0.0, 100 - route_complexity * 50 - traffic_factor * 30)

        return RouteOption(
            route=points,
            distance=round_half_up(distance, 2),
            estimated_time=round_half_up(estimated_time, 2),
            traffic_factor=traffic_factor,
            safety_score=round_score(safety_score),
        )

    def generate_alternative_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        count: int = 3,
        traffic_factor: Optional[float] = None,
    ) -> List[RouteOption]:
        """Direct route plus count-1 detours through a jittered midpoint.

        Args:
            origin: Start of the trip
            destination: End of the trip
            count: Total number of routes to return
            traffic_factor: Applied to every candidate

        Returns:
            Routes sorted by estimated time (fastest first)
        """
        if count < 1:
            raise InvalidInputError("At least one route must be requested")

        routes = [self.optimize_route(origin, destination, traffic_factor=traffic_factor)]

        center = midpoint(origin, destination)
        for _ in range(1, count):
            lat = center.lat + (self.rng.random() - 0.5) * self.jitter_deg
            lng = center.lng + (self.rng.random() - 0.5) * self.jitter_deg
            # Stay on the globe near the poles and the antimeridian
            waypoint = Coordinate(lat=clamp(lat, -90.0, 90.0), lng=wrap_longitude(lng))
            routes.append(
                self.optimize_route(origin, destination, [waypoint], traffic_factor=traffic_factor)
            )

        routes.sort(key=lambda r: r.estimated_time)
        logger.debug(f"Generated {len(routes)} candidate routes")
        return routes

    def calculate_optimization_score(self, route: RouteOption) -> int:
        """Composite 0-100 score: distance 40%, time 40%, safety 20%.

        Distance and time are normalised against fixed ceilings, so anything
        beyond them scores zero on that component.
        """
        distance_score = max(0.0, 100 - route.distance / self.max_distance_km * 100)
        time_score = max(0.0, 100 - route.estimated_time / self.max_time_min * 100)

        return round_score(
            distance_score * ROUTE_SCORE_WEIGHTS["distance"]
            + time_score * ROUTE_SCORE_WEIGHTS["time"]
            + route.safety_score * ROUTE_SCORE_WEIGHTS["safety"]
        )


def build_realtime_update(
    location: Coordinate,
    traffic_condition: str = "normal",
    estimated_delay: float = 0.0,
    *,
    timestamp: datetime,
) -> RealTimeUpdate:
    """Validate and build one real-time update entry.

    Raises:
        InvalidInputError: delay is negative or traffic condition is blank
    """
    if estimated_delay < 0:
        raise InvalidInputError("Estimated delay cannot be negative")
    if not traffic_condition or not traffic_condition.strip():
        raise InvalidInputError("Traffic condition is required")

    return RealTimeUpdate(
        timestamp=timestamp,
        location=location,
        traffic_condition=traffic_condition.strip(),
        estimated_delay=estimated_delay,
    )


def append_realtime_update(
    log: Sequence[RealTimeUpdate], update: RealTimeUpdate
) -> List[RealTimeUpdate]:
    """Return a new log with update appended.

    Raises:
        InvalidInputError: update is older than the last entry
    """
    if log and update.timestamp < log[-1].timestamp:
        raise InvalidInputError("Real-time updates must be appended in chronological order")
    return [*log, update]
