"""Route optimisation API endpoints."""

import logging
import random
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status

from app.config import Settings
from app.core.exceptions import ExternalServiceError
from app.core.rate_limit import limiter, rate_limit_directions, rate_limit_scoring
from app.dependencies import get_route_optimizer, get_routing_service, get_settings_dependency
from app.repositories.route_repository import RouteOptimizationRepository, get_route_repository
from app.schemas.route import (
    CreateOptimizationRequest,
    DirectionsResponse,
    OptimizeRouteRequest,
    RealTimeUpdateRequest,
    RouteOptimizationRecord,
    RouteOption,
    RouteScoreResponse,
    RouteStatus,
    RouteStep,
)
from app.services.route_optimizer import RouteOptimizationService, build_realtime_update
from app.services.routing_service import RoutingService
from app.utils.geometry import to_geojson_linestring

logger = logging.getLogger(__name__)
router = APIRouter()

FALLBACK_MESSAGE = (
    "Using fallback route calculation. Configure GOOGLE_MAPS_API_KEY for provider routes."
)


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@router.post(
    "/optimize",
    response_model=DirectionsResponse,
    summary="Get a route between two points",
    description="""
    Returns a route from the directions provider when one is configured.

    When the provider is not configured, fails, or finds no route, the route is
    computed by the built-in optimiser: straight legs through the waypoints, a
    traffic-adjusted travel time at 40 km/h base speed, and a safety score.
    """,
)
@limiter.limit(rate_limit_directions)
async def optimize_route(
    request: Request,
    payload: OptimizeRouteRequest,
    routing_service: RoutingService = Depends(get_routing_service),
    optimizer: RouteOptimizationService = Depends(get_route_optimizer),
):
    """Provider route, or the fallback optimiser's route."""
    if routing_service.enabled:
        try:
            data = await routing_service.get_directions(
                payload.origin, payload.destination, payload.waypoints
            )
            info = routing_service.extract_route_info(data)
            points = info["route"] or [payload.origin, *payload.waypoints, payload.destination]
            return DirectionsResponse(
                distance=round(info["distance_km"], 2),
                duration=round(info["duration_min"], 2),
                route=points,
                geometry=to_geojson_linestring(points),
                optimized=True,
                steps=[RouteStep(**step) for step in info["steps"]],
            )
        except ExternalServiceError as e:
            logger.warning(f"Directions provider failed, using fallback route: {e.message}")

    route = optimizer.optimize_route(
        payload.origin, payload.destination, payload.waypoints, payload.traffic_factor
    )
    return DirectionsResponse(
        distance=route.distance,
        duration=route.estimated_time,
        route=route.route,
        geometry=to_geojson_linestring(route.route),
        optimized=False,
        safety_score=route.safety_score,
        message=FALLBACK_MESSAGE,
    )


@router.post(
    "/optimizations",
    response_model=RouteOptimizationRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Optimise a trip route and start its update log",
)
@limiter.limit(rate_limit_scoring)
async def create_optimization(
    request: Request,
    payload: CreateOptimizationRequest,
    optimizer: RouteOptimizationService = Depends(get_route_optimizer),
    repository: RouteOptimizationRepository = Depends(get_route_repository),
    settings: Settings = Depends(get_settings_dependency),
):
    """Optimise a route, generate alternatives and score it.

    An active record for the same trip is re-optimised in place, keeping its
    real-time update log.
    """
    if payload.seed is not None:
        optimizer = RouteOptimizationService(rng=random.Random(payload.seed))

    optimized = optimizer.optimize_route(
        payload.origin, payload.destination, traffic_factor=payload.traffic_factor
    )
    alternatives = optimizer.generate_alternative_routes(
        payload.origin,
        payload.destination,
        payload.alternatives or settings.ALTERNATIVE_ROUTE_COUNT,
        traffic_factor=payload.traffic_factor,
    )
    score = optimizer.calculate_optimization_score(optimized)

    existing = repository.find_active_by_trip(payload.trip_id) if payload.trip_id else None
    if existing is not None:
        logger.info(f"Re-optimising active route {existing.id} for trip {payload.trip_id}")
        return repository.replace_route(existing.id, optimized, alternatives, score)

    return repository.create(
        origin=payload.origin,
        destination=payload.destination,
        optimized_route=optimized,
        alternative_routes=alternatives,
        optimization_score=score,
        trip_id=payload.trip_id,
        driver_id=payload.driver_id,
    )


@router.get("/optimizations/{record_id}", response_model=RouteOptimizationRecord)
async def get_optimization(
    record_id: str,
    repository: RouteOptimizationRepository = Depends(get_route_repository),
):
    """Get a route optimisation record with its update log."""
    return repository.get(record_id)


@router.patch("/optimizations/{record_id}/updates", response_model=RouteOptimizationRecord)
async def add_realtime_update(
    record_id: str,
    payload: RealTimeUpdateRequest,
    repository: RouteOptimizationRepository = Depends(get_route_repository),
):
    """Append a position/traffic report to the record's update log."""
    update = build_realtime_update(
        payload.location,
        payload.traffic_condition,
        payload.estimated_delay,
        timestamp=_as_utc(payload.timestamp),
    )
    return repository.append_update(record_id, update)


@router.patch("/optimizations/{record_id}/status", response_model=RouteOptimizationRecord)
async def set_optimization_status(
    record_id: str,
    route_status: RouteStatus = Body(..., embed=True, alias="status"),
    repository: RouteOptimizationRepository = Depends(get_route_repository),
):
    """Complete or cancel a route optimisation."""
    return repository.set_status(record_id, route_status)


@router.post("/score", response_model=RouteScoreResponse)
@limiter.limit(rate_limit_scoring)
async def score_route(
    request: Request,
    route: RouteOption,
    optimizer: RouteOptimizationService = Depends(get_route_optimizer),
):
    """Composite optimisation score (0-100) of a route."""
    return RouteScoreResponse(optimization_score=optimizer.calculate_optimization_score(route))
