"""Trip safety prediction service.

Derives risk factors from trip context (time, route shape, driver record,
vehicle state) and turns them into a safety score, accident and delay
probabilities, and an ordered list of recommendations and alerts.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from app.config import SAFETY_PENALTY_WEIGHTS, get_settings
from app.schemas.geo import Coordinate
from app.schemas.safety import (
    Alert,
    DriverHistory,
    Recommendation,
    RiskFactors,
    SafetyPrediction,
    VehicleCondition,
)
from app.services.factor_sources import ConstantWeatherSource, WeatherSource
from app.utils.geometry import degree_distance
from app.utils.scoring import (
    clamp,
    get_time_of_day_risk,
    get_traffic_risk,
    is_night,
    round_half_up,
    round_score,
)

logger = logging.getLogger(__name__)

MAX_ACCIDENTS = 5
MAX_VIOLATIONS = 10
MAX_VEHICLE_AGE_YEARS = 15
MAX_RATING = 5.0


def driver_history_from_ratings(
    ratings: Sequence[float], accidents: int = 0, violations: int = 0
) -> DriverHistory:
    """Build a driver history from individual trip ratings.

    Drivers without ratings are given the maximum rating.
    """
    avg_rating = sum(ratings) / len(ratings) if ratings else MAX_RATING
    return DriverHistory(accidents=accidents, violations=violations, rating=avg_rating)


class SafetyPredictionService:
    """Scores trip safety from risk factors."""

    def __init__(self, weather_source: Optional[WeatherSource] = None):
        self.weather_source = weather_source or ConstantWeatherSource(
            get_settings().SAFETY_WEATHER_FACTOR
        )

    def analyze_risk_factors(
        self,
        origin: Coordinate,
        destination: Coordinate,
        scheduled_time: datetime,
        driver_history: Optional[DriverHistory] = None,
        vehicle_condition: Optional[VehicleCondition] = None,
    ) -> RiskFactors:
        """Derive risk factors for a trip.

        Args:
            origin: Pickup point
            destination: Drop-off point
            scheduled_time: Departure time
            driver_history: Driver record, if a driver is assigned
            vehicle_condition: Vehicle state, if known

        Returns:
            RiskFactors; driver_history/vehicle_condition are None when the
            corresponding input is missing
        """
        # Straight-line spread in degrees stands in for road complexity
        route_complexity = min(1.0, degree_distance(origin, destination) * 10)

        driver_factor = None
        if driver_history is not None:
            driver_factor = clamp(
                min(1.0, driver_history.accidents / MAX_ACCIDENTS) * 0.5
                + min(1.0, driver_history.violations / MAX_VIOLATIONS) * 0.3
                + (MAX_RATING - driver_history.rating) / MAX_RATING * 0.2
            )

        vehicle_factor = None
        if vehicle_condition is not None:
            vehicle_factor = clamp(
                min(1.0, vehicle_condition.age / MAX_VEHICLE_AGE_YEARS) * 0.6
                + (1 - vehicle_condition.maintenance) * 0.4
            )

        return RiskFactors(
            weather=clamp(self.weather_source.weather_factor(origin, scheduled_time)),
            traffic=get_traffic_risk(scheduled_time),
            time_of_day=get_time_of_day_risk(scheduled_time),
            route_complexity=route_complexity,
            driver_history=driver_factor,
            vehicle_condition=vehicle_factor,
        )

    def predict_safety(self, risk_factors: RiskFactors, *, evaluated_at: datetime) -> SafetyPrediction:
        """Score safety and collect recommendations and alerts.

        Args:
            risk_factors: Factors from analyze_risk_factors or the caller
            evaluated_at: Time whose hour decides night-time weighting

        Returns:
            SafetyPrediction with rules applied in a fixed order
        """
        night = is_night(evaluated_at)
        weights = SAFETY_PENALTY_WEIGHTS

        safety_score = 100.0
        safety_score -= risk_factors.weather * weights["weather"]
        safety_score -= risk_factors.traffic * weights["traffic"]
        safety_score -= risk_factors.time_of_day * (
            weights["time_of_day_night"] if night else weights["time_of_day_day"]
        )
        safety_score -= risk_factors.route_complexity * weights["route_complexity"]
        if risk_factors.driver_history is not None:
            safety_score -= risk_factors.driver_history * weights["driver_history"]
        if risk_factors.vehicle_condition is not None:
            safety_score -= risk_factors.vehicle_condition * weights["vehicle_condition"]
        safety_score = clamp(safety_score, 0.0, 100.0)

        accident_probability = (100 - safety_score) / 100
        delay_probability = min(1.0, risk_factors.traffic * 0.6 + risk_factors.weather * 0.4)
        route_safety = max(
            0.0, 100 - risk_factors.route_complexity * 30 - risk_factors.traffic * 20
        )

        recommendations, alerts = self._evaluate_rules(risk_factors, safety_score, night)

        prediction = SafetyPrediction(
            safety_score=round_score(safety_score),
            accident_probability=round_half_up(accident_probability, 2),
            delay_probability=round_half_up(delay_probability, 2),
            route_safety=round_score(route_safety),
            recommendations=recommendations,
            alerts=alerts,
        )

        if any(alert.severity == "critical" for alert in alerts):
            logger.warning(
                "Critical safety alert raised",
                extra={
                    "extra_fields": {
                        "safety_score": prediction.safety_score,
                        "alerts": [alert.message for alert in alerts],
                    }
                },
            )
        return prediction

    @staticmethod
    def _evaluate_rules(
        risk_factors: RiskFactors, safety_score: float, night: bool
    ) -> Tuple[List[Recommendation], List[Alert]]:
        """Apply the recommendation/alert rules in order; several may fire."""
        recommendations: List[Recommendation] = []
        alerts: List[Alert] = []

        if risk_factors.weather > 0.7:
            recommendations.append(
                Recommendation(
                    type="route_change",
                    priority="high",
                    message=(
                        "Severe weather conditions detected. "
                        "Consider delaying trip or taking safer route."
                    ),
                    action="delay_trip",
                )
            )
            alerts.append(Alert(type="weather", severity="critical", message="Severe weather warning"))
        elif risk_factors.weather > 0.4:
            recommendations.append(
                Recommendation(
                    type="route_change",
                    priority="medium",
                    message="Moderate weather conditions. Drive carefully.",
                )
            )
            alerts.append(Alert(type="weather", severity="warning", message="Weather advisory"))

        if risk_factors.traffic > 0.8:
            recommendations.append(
                Recommendation(
                    type="route_change",
                    priority="high",
                    message="Heavy traffic detected. Alternative route recommended.",
                    action="change_route",
                )
            )
            alerts.append(Alert(type="traffic", severity="warning", message="Heavy traffic ahead"))

        if night:
            recommendations.append(
                Recommendation(
                    type="safety_alert",
                    priority="medium",
                    message="Night driving detected. Extra caution recommended.",
                )
            )

        if risk_factors.driver_history is not None and risk_factors.driver_history > 0.5:
            recommendations.append(
                Recommendation(
                    type="driver_change",
                    priority="high",
                    message="Driver history indicates higher risk. Consider alternative driver.",
                    action="change_driver",
                )
            )
            alerts.append(Alert(type="driver", severity="warning", message="Driver risk assessment"))

        if risk_factors.route_complexity > 0.7:
            recommendations.append(
                Recommendation(
                    type="route_change",
                    priority="medium",
                    message="Complex route detected. Simpler alternative available.",
                    action="change_route",
                )
            )

        if safety_score < 50:
            alerts.append(
                Alert(
                    type="route",
                    severity="critical",
                    message="Low safety score. Trip not recommended.",
                )
            )

        return recommendations, alerts
