"""RideWise Application Configuration.

Centralized configuration management for the RideWise scoring service using
Pydantic settings. Handles environment variables, the directions provider key,
cache connections, and the fixed weights of the heuristic scoring models.

Environment variables are loaded from .env file in development and from the
system environment in production.
"""

from typing import Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Demand model weights (must sum to 1.0)
# Format: {factor_name: weight}
DEMAND_FACTOR_WEIGHTS: Dict[str, float] = {
    "historical_data": 0.3,
    "weather": 0.1,
    "events": 0.1,
    "time_of_day": 0.3,
    "day_of_week": 0.2,
}

# Safety score deductions per unit of risk factor (score starts at 100)
# time_of_day uses the "night" weight between 22:00 and 05:59, "day" otherwise
SAFETY_PENALTY_WEIGHTS: Dict[str, float] = {
    "weather": 20.0,
    "traffic": 15.0,
    "time_of_day_night": 25.0,
    "time_of_day_day": 10.0,
    "route_complexity": 15.0,
    "driver_history": 20.0,
    "vehicle_condition": 15.0,
}

# Composite route optimisation score weights
ROUTE_SCORE_WEIGHTS: Dict[str, float] = {
    "distance": 0.4,
    "time": 0.4,
    "safety": 0.2,
}


class Settings(BaseSettings):
    """Application settings - single source of truth for configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # External APIs
    GOOGLE_MAPS_API_KEY: str = Field(default="")
    GOOGLE_MAPS_API_URL: str = "https://maps.googleapis.com/maps/api"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60

    # Demand prediction
    DEMAND_WEATHER_FACTOR: float = Field(default=0.6, ge=0.0, le=1.0)
    DEMAND_EVENTS_FACTOR: float = Field(default=0.5, ge=0.0, le=1.0)
    DEMAND_WINDOW_HOURS: int = 1
    DEFAULT_SERVICE_AREA_KM2: int = 10

    # Route optimisation
    DEFAULT_TRAFFIC_FACTOR: float = Field(default=0.3, ge=0.0, le=1.0)
    BASE_SPEED_KMH: float = 40.0
    ALTERNATIVE_ROUTE_COUNT: int = 3
    ALTERNATIVE_JITTER_DEG: float = 0.01  # full width, i.e. +/- 0.005 degrees
    MAX_ROUTE_DISTANCE_KM: float = 100.0
    MAX_ROUTE_TIME_MIN: float = 120.0

    # Safety prediction
    SAFETY_WEATHER_FACTOR: float = Field(default=0.3, ge=0.0, le=1.0)

    # Grid (H3 Hexagonal) for demand zones
    H3_RESOLUTION: int = 7  # ~1.2km edge, ~5 km² hexagons

    @field_validator("CORS_ORIGINS")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        if isinstance(self.CORS_ORIGINS, str):
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        return self.CORS_ORIGINS


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
