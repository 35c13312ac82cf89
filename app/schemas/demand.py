"""Demand prediction and driver allocation schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.geo import Coordinate, TimeWindow


class HistoricalSample(BaseModel):
    """One historical demand observation for an area."""

    model_config = ConfigDict(frozen=True)

    demand: float = Field(default=0.0, ge=0.0)
    timestamp: Optional[datetime] = None


class PredictionFactors(BaseModel):
    """Normalised inputs of the demand model, each in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    historical_data: float = Field(..., ge=0.0, le=1.0)
    weather: float = Field(..., ge=0.0, le=1.0)
    events: float = Field(..., ge=0.0, le=1.0)
    time_of_day: float = Field(..., ge=0.0, le=1.0)
    day_of_week: float = Field(..., ge=0.0, le=1.0)


class DemandPrediction(BaseModel):
    """Predicted demand for a location and time window."""

    model_config = ConfigDict(frozen=True)

    demand: int = Field(..., ge=0, le=100, description="Demand score (0-100)")
    confidence: float = Field(..., ge=0.0, le=1.0)
    factors: PredictionFactors


class LocationDemand(BaseModel):
    """Demand score at a location, as fed to the driver allocator."""

    model_config = ConfigDict(frozen=True)

    location: Coordinate
    demand: float = Field(..., ge=0.0)


class DriverAllocation(BaseModel):
    """Number of drivers assigned to a location."""

    model_config = ConfigDict(frozen=True)

    location: Coordinate
    allocated_drivers: int = Field(..., ge=1)


class DemandPredictionRequest(BaseModel):
    """Request for a demand prediction."""

    location: Coordinate
    time_window: Optional[TimeWindow] = None
    historical_data: List[HistoricalSample] = Field(default_factory=list)
    evaluated_at: Optional[datetime] = Field(
        None, description="Time the prediction is evaluated at (defaults to now)"
    )
    area_km2: Optional[int] = Field(None, gt=0)

    class Config:
        json_schema_extra = {
            "example": {
                "location": {"lat": 28.6139, "lng": 77.2090, "address": "Connaught Place"},
                "time_window": {"start": "2026-03-02T08:00:00", "end": "2026-03-02T09:00:00"},
                "historical_data": [{"demand": 40}, {"demand": 55}],
            }
        }


class DemandPredictionResponse(BaseModel):
    """Demand prediction as handed to the persistence layer."""

    location: Coordinate
    cell_id: str = Field(..., description="H3 cell containing the location")
    time_window: TimeWindow
    predicted_demand: int
    confidence: float
    factors: PredictionFactors
    recommended_drivers: int
    evaluated_at: datetime


class AllocationRequest(BaseModel):
    """Request to spread available drivers over demand locations."""

    predictions: List[LocationDemand]
    available_drivers: int = Field(..., ge=0)


class AllocationEntry(BaseModel):
    """Allocation result with the zone it applies to."""

    location: Coordinate
    cell_id: str
    demand: float
    allocated_drivers: int


class AllocationResponse(BaseModel):
    """Driver allocation across demand locations."""

    total_available_drivers: int
    total_allocated_drivers: int
    allocation: List[AllocationEntry]
