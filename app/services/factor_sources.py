"""External factor sources for the scoring models.

Weather and event data are not integrated yet; the models read them through
these small interfaces so a live feed can replace the constant defaults
without touching the scoring code.
"""

from datetime import datetime
from typing import Protocol

from app.schemas.geo import Coordinate, TimeWindow


class WeatherSource(Protocol):
    """Provides a weather factor in [0, 1] for a place and time."""

    def weather_factor(self, location: Coordinate, at: datetime) -> float: ...


class EventSource(Protocol):
    """Provides an events factor in [0, 1] for a place and time window."""

    def events_factor(self, location: Coordinate, window: TimeWindow) -> float: ...


class ConstantWeatherSource:
    """Returns the same weather factor everywhere."""

    def __init__(self, value: float):
        self.value = value

    def weather_factor(self, location: Coordinate, at: datetime) -> float:
        return self.value


class ConstantEventSource:
    """Returns the same events factor everywhere."""

    def __init__(self, value: float):
        self.value = value

    def events_factor(self, location: Coordinate, window: TimeWindow) -> float:
        return self.value
