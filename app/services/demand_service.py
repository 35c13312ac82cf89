"""Ride demand prediction service.

Combines time of day, day of week, historical density and external weather
and event factors into a 0-100 demand score for an area, and converts demand
into a recommended driver count.
"""

import logging
import math
from datetime import datetime
from typing import Optional, Sequence

from app.config import DEMAND_FACTOR_WEIGHTS, get_settings
from app.core.exceptions import InvalidInputError
from app.schemas.demand import DemandPrediction, HistoricalSample, PredictionFactors
from app.schemas.geo import Coordinate, TimeWindow
from app.services.factor_sources import (
    ConstantEventSource,
    ConstantWeatherSource,
    EventSource,
    WeatherSource,
)
from app.utils.scoring import (
    clamp,
    get_demand_day_factor,
    get_demand_time_factor,
    round_score,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORICAL_FACTOR = 0.5
DRIVERS_PER_DEMAND_UNIT = 0.1
PEAK_BUFFER_RATIO = 0.2


class DemandPredictionService:
    """Predicts ride demand for a location and time window."""

    def __init__(
        self,
        weather_source: Optional[WeatherSource] = None,
        event_source: Optional[EventSource] = None,
    ):
        settings = get_settings()
        self.weather_source = weather_source or ConstantWeatherSource(
            settings.DEMAND_WEATHER_FACTOR
        )
        self.event_source = event_source or ConstantEventSource(settings.DEMAND_EVENTS_FACTOR)

    def predict_demand(
        self,
        location: Coordinate,
        time_window: TimeWindow,
        historical_data: Optional[Sequence[HistoricalSample]] = None,
        *,
        evaluated_at: datetime,
    ) -> DemandPrediction:
        """Predict demand for an area.

        Args:
            location: Centre of the area
            time_window: Period the prediction applies to
            historical_data: Past demand observations for the area
            evaluated_at: Time whose hour and weekday drive the time factors

        Returns:
            Demand score (0-100), confidence and the factors used

        Raises:
            InvalidInputError: time_window ends before it starts
        """
        if time_window.start > time_window.end:
            raise InvalidInputError("Time window must not end before it starts")

        samples = list(historical_data or [])

        factors = PredictionFactors(
            historical_data=self._historical_factor(samples),
            weather=clamp(self.weather_source.weather_factor(location, evaluated_at)),
            events=clamp(self.event_source.events_factor(location, time_window)),
            time_of_day=get_demand_time_factor(evaluated_at),
            day_of_week=get_demand_day_factor(evaluated_at),
        )

        weighted = sum(
            getattr(factors, name) * weight for name, weight in DEMAND_FACTOR_WEIGHTS.items()
        )

        prediction = DemandPrediction(
            demand=round_score(weighted * 100),
            confidence=self._confidence(len(samples)),
            factors=factors,
        )

        logger.debug(
            "Demand predicted",
            extra={
                "extra_fields": {
                    "lat": location.lat,
                    "lng": location.lng,
                    "demand": prediction.demand,
                    "confidence": prediction.confidence,
                    "samples": len(samples),
                }
            },
        )
        return prediction

    @staticmethod
    def _historical_factor(samples: Sequence[HistoricalSample]) -> float:
        if not samples:
            return DEFAULT_HISTORICAL_FACTOR
        avg_demand = sum(sample.demand for sample in samples) / len(samples)
        return min(avg_demand / 100, 1.0)

    @staticmethod
    def _confidence(sample_count: int) -> float:
        if sample_count > 10:
            return 0.9
        elif sample_count > 5:
            return 0.7
        return 0.5


def calculate_recommended_drivers(predicted_demand: float, area_km2: int = 10) -> int:
    """Recommended number of drivers for a predicted demand.

    One driver per ten demand points, plus a 20% buffer for peaks, never
    fewer than one. The model is calibrated for a ~10 km² area; area_km2 is
    accepted for callers that carry it but does not change the result.

    Raises:
        InvalidInputError: predicted_demand is negative
    """
    if predicted_demand < 0:
        raise InvalidInputError("Predicted demand cannot be negative")

    base_drivers = math.ceil(predicted_demand * DRIVERS_PER_DEMAND_UNIT)
    buffer = math.ceil(base_drivers * PEAK_BUFFER_RATIO)
    return max(1, base_drivers + buffer)
