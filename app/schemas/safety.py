"""Safety prediction request/response schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.geo import Coordinate

RecommendationType = Literal["route_change", "time_adjustment", "driver_change", "safety_alert"]
Priority = Literal["low", "medium", "high"]
AlertType = Literal["weather", "traffic", "route", "driver"]
Severity = Literal["info", "warning", "critical"]


class DriverHistory(BaseModel):
    """Driving record used to derive the driver-history risk."""

    model_config = ConfigDict(frozen=True)

    accidents: int = Field(default=0, ge=0)
    violations: int = Field(default=0, ge=0)
    rating: float = Field(default=5.0, ge=0.0, le=5.0)


class VehicleCondition(BaseModel):
    """Vehicle state used to derive the vehicle-condition risk."""

    model_config = ConfigDict(frozen=True)

    age: float = Field(..., ge=0.0, description="Vehicle age in years")
    maintenance: float = Field(..., ge=0.0, le=1.0, description="1 = perfectly maintained")


class RiskFactors(BaseModel):
    """Trip risk factors, each in [0, 1] (higher is riskier)."""

    model_config = ConfigDict(frozen=True)

    weather: float = Field(..., ge=0.0, le=1.0)
    traffic: float = Field(..., ge=0.0, le=1.0)
    time_of_day: float = Field(..., ge=0.0, le=1.0)
    route_complexity: float = Field(..., ge=0.0, le=1.0)
    driver_history: Optional[float] = Field(None, ge=0.0, le=1.0)
    vehicle_condition: Optional[float] = Field(None, ge=0.0, le=1.0)


class Recommendation(BaseModel):
    """Suggested action for the rider, driver or dispatcher."""

    model_config = ConfigDict(frozen=True)

    type: RecommendationType
    priority: Priority
    message: str
    action: Optional[str] = None


class Alert(BaseModel):
    """Severity-tagged warning attached to a prediction."""

    model_config = ConfigDict(frozen=True)

    type: AlertType
    severity: Severity
    message: str


class SafetyPrediction(BaseModel):
    """Safety score, probabilities and the rules that fired."""

    model_config = ConfigDict(frozen=True)

    safety_score: int = Field(..., ge=0, le=100)
    accident_probability: float = Field(..., ge=0.0, le=1.0)
    delay_probability: float = Field(..., ge=0.0, le=1.0)
    route_safety: int = Field(..., ge=0, le=100)
    recommendations: List[Recommendation] = []
    alerts: List[Alert] = []


class SafetyAnalysisRequest(BaseModel):
    """Trip context to analyse."""

    origin: Coordinate
    destination: Coordinate
    scheduled_time: datetime
    driver_history: Optional[DriverHistory] = None
    driver_ratings: Optional[List[float]] = Field(
        None, description="Individual ratings; used when driver_history is absent"
    )
    vehicle_condition: Optional[VehicleCondition] = None
    evaluated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "origin": {"lat": 28.61, "lng": 77.20},
                "destination": {"lat": 28.70, "lng": 77.30},
                "scheduled_time": "2026-03-02T18:30:00",
                "driver_history": {"accidents": 1, "violations": 2, "rating": 4.6},
                "vehicle_condition": {"age": 6, "maintenance": 0.8},
            }
        }


class SafetyPredictionRequest(BaseModel):
    """Explicit risk factors to score."""

    risk_factors: RiskFactors
    evaluated_at: Optional[datetime] = None


class TimestampedAlert(Alert):
    """Alert stamped with the time it was raised."""

    timestamp: datetime


class SafetyAnalysisResponse(BaseModel):
    """Safety analytics for a trip, ready for persistence."""

    safety_score: int
    risk_factors: RiskFactors
    predictions: SafetyPrediction
    recommendations: List[Recommendation]
    alerts: List[TimestampedAlert]
    evaluated_at: datetime


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str = Field(..., description="Error type or exception class name")
    message: str = Field(..., description="Human-readable error message")
    path: str = Field(..., description="API endpoint path where error occurred")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "InvalidInputError",
                "message": "Total demand must be positive to allocate drivers",
                "path": "/api/v1/demand/allocation",
            }
        }
