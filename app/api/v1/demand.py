"""Demand prediction and driver allocation endpoints."""

import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Request, status

from app.config import Settings
from app.core.rate_limit import limiter, rate_limit_scoring
from app.dependencies import get_demand_service, get_settings_dependency
from app.schemas.demand import (
    AllocationEntry,
    AllocationRequest,
    AllocationResponse,
    DemandPredictionRequest,
    DemandPredictionResponse,
)
from app.schemas.geo import TimeWindow
from app.services.allocation_service import optimize_driver_allocation
from app.services.demand_service import DemandPredictionService, calculate_recommended_drivers
from app.utils.geometry import h3_cell

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/predict",
    response_model=DemandPredictionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Predict ride demand for an area",
    description="""
    Predicts ride demand (0-100) for a location and time window.

    The score combines the hour of day, the day of week, the historical demand
    observations supplied by the caller, and weather/event factors. The
    response also carries the recommended number of drivers and the H3 zone
    of the location, ready to be stored by the booking backend.
    """,
)
@limiter.limit(rate_limit_scoring)
async def predict_demand(
    request: Request,
    payload: DemandPredictionRequest,
    service: DemandPredictionService = Depends(get_demand_service),
    settings: Settings = Depends(get_settings_dependency),
):
    """Predict demand and the drivers needed to serve it."""
    evaluated_at = payload.evaluated_at or datetime.now()
    time_window = payload.time_window or TimeWindow(
        start=evaluated_at,
        end=evaluated_at + timedelta(hours=settings.DEMAND_WINDOW_HOURS),
    )

    prediction = service.predict_demand(
        payload.location,
        time_window,
        payload.historical_data,
        evaluated_at=evaluated_at,
    )
    recommended_drivers = calculate_recommended_drivers(
        prediction.demand, payload.area_km2 or settings.DEFAULT_SERVICE_AREA_KM2
    )

    return DemandPredictionResponse(
        location=payload.location,
        cell_id=h3_cell(payload.location, settings.H3_RESOLUTION),
        time_window=time_window,
        predicted_demand=prediction.demand,
        confidence=prediction.confidence,
        factors=prediction.factors,
        recommended_drivers=recommended_drivers,
        evaluated_at=evaluated_at,
    )


@router.post(
    "/allocation",
    response_model=AllocationResponse,
    summary="Allocate available drivers across demand zones",
    description="""
    Distributes the available drivers proportionally to the demand of each
    location. Every location receives at least one driver; rounding is done per
    location, so the allocated total can differ slightly from the pool size.
    """,
)
@limiter.limit(rate_limit_scoring)
async def allocate_drivers(
    request: Request,
    payload: AllocationRequest,
    settings: Settings = Depends(get_settings_dependency),
):
    """Spread the driver pool over the predicted demand."""
    allocation = optimize_driver_allocation(payload.predictions, payload.available_drivers)

    entries = [
        AllocationEntry(
            location=alloc.location,
            cell_id=h3_cell(alloc.location, settings.H3_RESOLUTION),
            demand=prediction.demand,
            allocated_drivers=alloc.allocated_drivers,
        )
        for alloc, prediction in zip(allocation, payload.predictions)
    ]

    return AllocationResponse(
        total_available_drivers=payload.available_drivers,
        total_allocated_drivers=sum(e.allocated_drivers for e in entries),
        allocation=entries,
    )
