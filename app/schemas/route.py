"""Route request/response schemas."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.geo import Coordinate

RouteStatus = Literal["active", "completed", "cancelled"]


class RouteOption(BaseModel):
    """A candidate route with its travel estimates."""

    model_config = ConfigDict(frozen=True)

    route: List[Coordinate]
    distance: float = Field(..., ge=0.0, description="Distance in km")
    estimated_time: float = Field(..., ge=0.0, description="Travel time in minutes")
    traffic_factor: float = Field(..., ge=0.0, le=1.0)
    safety_score: int = Field(..., ge=0, le=100)

    @property
    def waypoints(self) -> List[Coordinate]:
        """Intermediate points between origin and destination."""
        return self.route[1:-1]


class RealTimeUpdate(BaseModel):
    """One entry of a route's real-time update log."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    location: Coordinate
    traffic_condition: str = Field(default="normal", min_length=1)
    estimated_delay: float = Field(default=0.0, ge=0.0, description="Delay in minutes")


class RouteOptimizationRecord(BaseModel):
    """Optimised route for a trip together with its update log."""

    model_config = ConfigDict(frozen=True)

    id: str
    trip_id: Optional[str] = None
    driver_id: Optional[str] = None
    origin: Coordinate
    destination: Coordinate
    optimized_route: RouteOption
    alternative_routes: List[RouteOption] = []
    optimization_score: int = Field(..., ge=0, le=100)
    real_time_updates: List[RealTimeUpdate] = []
    status: RouteStatus = "active"
    created_at: datetime
    updated_at: datetime


class OptimizeRouteRequest(BaseModel):
    """Request for a route between two points."""

    origin: Coordinate
    destination: Coordinate
    waypoints: List[Coordinate] = Field(default_factory=list)
    traffic_factor: Optional[float] = Field(None, ge=0.0, le=1.0)


class RouteStep(BaseModel):
    """Per-leg summary from the directions provider."""

    distance: str
    duration: str
    instructions: List[str] = []


class DirectionsResponse(BaseModel):
    """Route from the directions provider or the fallback optimiser."""

    distance: float = Field(..., description="Distance in km")
    duration: float = Field(..., description="Duration in minutes")
    route: List[Coordinate]
    geometry: Dict[str, Any]
    optimized: bool = Field(..., description="True when the directions provider answered")
    safety_score: Optional[int] = None
    steps: List[RouteStep] = []
    message: Optional[str] = None


class CreateOptimizationRequest(BaseModel):
    """Request to optimise a trip's route and start its update log."""

    origin: Coordinate
    destination: Coordinate
    trip_id: Optional[str] = None
    driver_id: Optional[str] = None
    traffic_factor: Optional[float] = Field(None, ge=0.0, le=1.0)
    alternatives: Optional[int] = Field(None, ge=1, le=10, description="Number of candidate routes")
    seed: Optional[int] = Field(None, description="Seed for reproducible alternatives")


class RealTimeUpdateRequest(BaseModel):
    """Position/traffic report appended to a route's update log."""

    location: Coordinate
    traffic_condition: str = "normal"
    estimated_delay: float = 0.0
    timestamp: Optional[datetime] = None


class RouteScoreResponse(BaseModel):
    """Composite optimisation score of a route."""

    optimization_score: int
