"""FastAPI dependencies."""

from functools import lru_cache

from app.config import Settings, get_settings
from app.services.demand_service import DemandPredictionService
from app.services.route_optimizer import RouteOptimizationService
from app.services.routing_service import RoutingService
from app.services.safety_service import SafetyPredictionService


def get_settings_dependency() -> Settings:
    """Get settings instance as a dependency."""
    return get_settings()


@lru_cache
def get_demand_service() -> DemandPredictionService:
    """Demand predictor with the configured factor sources."""
    return DemandPredictionService()


@lru_cache
def get_safety_service() -> SafetyPredictionService:
    """Safety predictor with the configured weather source."""
    return SafetyPredictionService()


def get_route_optimizer() -> RouteOptimizationService:
    """Route optimiser seeded from system entropy."""
    return RouteOptimizationService()


@lru_cache
def get_routing_service() -> RoutingService:
    """Directions client shared so its Redis connection is reused."""
    return RoutingService()
