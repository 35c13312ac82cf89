"""Trip safety analytics endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request

from app.core.rate_limit import limiter, rate_limit_scoring
from app.dependencies import get_safety_service
from app.schemas.safety import (
    SafetyAnalysisRequest,
    SafetyAnalysisResponse,
    SafetyPrediction,
    SafetyPredictionRequest,
    TimestampedAlert,
)
from app.services.safety_service import SafetyPredictionService, driver_history_from_ratings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/analyze",
    response_model=SafetyAnalysisResponse,
    summary="Analyse the safety of a trip",
    description="""
    Derives risk factors from the trip (departure time, origin/destination
    spread, driver record, vehicle state) and scores them.

    **Returned rules (fixed order, several may fire):**
    - Weather warnings and delay suggestions
    - Heavy traffic and alternative route suggestions
    - Night driving caution
    - High-risk driver replacement
    - Complex route simplification
    - Critical alert when the safety score falls below 50

    When `driver_history` is omitted but `driver_ratings` are given, the driver
    record is built from the average rating.
    """,
)
@limiter.limit(rate_limit_scoring)
async def analyze_trip_safety(
    request: Request,
    payload: SafetyAnalysisRequest,
    service: SafetyPredictionService = Depends(get_safety_service),
):
    """Risk factors, prediction and timestamped alerts for a trip."""
    driver_history = payload.driver_history
    if driver_history is None and payload.driver_ratings is not None:
        driver_history = driver_history_from_ratings(payload.driver_ratings)

    risk_factors = service.analyze_risk_factors(
        payload.origin,
        payload.destination,
        payload.scheduled_time,
        driver_history=driver_history,
        vehicle_condition=payload.vehicle_condition,
    )

    evaluated_at = payload.evaluated_at or datetime.now()
    prediction = service.predict_safety(risk_factors, evaluated_at=evaluated_at)

    return SafetyAnalysisResponse(
        safety_score=prediction.safety_score,
        risk_factors=risk_factors,
        predictions=prediction,
        recommendations=prediction.recommendations,
        alerts=[
            TimestampedAlert(**alert.model_dump(), timestamp=evaluated_at)
            for alert in prediction.alerts
        ],
        evaluated_at=evaluated_at,
    )


@router.post("/predict", response_model=SafetyPrediction)
@limiter.limit(rate_limit_scoring)
async def predict_safety(
    request: Request,
    payload: SafetyPredictionRequest,
    service: SafetyPredictionService = Depends(get_safety_service),
):
    """Score explicit risk factors."""
    return service.predict_safety(
        payload.risk_factors, evaluated_at=payload.evaluated_at or datetime.now()
    )
