"""Scoring utilities shared by the demand, route and safety models.

Hour/day classification used for time-based weighting, plus the rounding and
clamping helpers every score goes through.
"""

import math
from datetime import datetime

RUSH_HOURS = frozenset(range(7, 10)) | frozenset(range(17, 20))
NIGHT_HOURS = frozenset(range(22, 24)) | frozenset(range(0, 6))
EARLY_MORNING_HOURS = frozenset(range(6, 9))


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positive values (12.5 -> 13).

    Python's built-in round() uses banker's rounding, which would move
    scores sitting exactly on .5 downwards.
    """
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def round_score(value: float) -> int:
    """Round a score to the nearest integer, halves up."""
    return int(round_half_up(value))


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Limit value to the [low, high] range."""
    return max(low, min(high, value))


def is_rush_hour(dt: datetime) -> bool:
    """07:00-09:59 and 17:00-19:59."""
    return dt.hour in RUSH_HOURS


def is_night(dt: datetime) -> bool:
    """22:00-05:59."""
    return dt.hour in NIGHT_HOURS


def is_early_morning(dt: datetime) -> bool:
    """06:00-08:59."""
    return dt.hour in EARLY_MORNING_HOURS


def get_demand_time_factor(dt: datetime) -> float:
    """Demand multiplier for the hour of day.

    Returns:
        0.9 during rush hours, 0.6 during the day (10-16), 0.7 in the
        evening (20-23), 0.4 at night and early morning
    """
    hour = dt.hour

    if hour in RUSH_HOURS:
        return 0.9
    elif 10 <= hour <= 16:
        return 0.6
    elif 20 <= hour <= 23:
        return 0.7
    else:
        return 0.4


def get_demand_day_factor(dt: datetime) -> float:
    """Demand multiplier for the day of week.

    Returns:
        0.9 on weekends, 0.8 on Fridays, 0.6 on other weekdays
    """
    weekday = dt.weekday()  # Monday == 0

    if weekday >= 5:
        return 0.9
    elif weekday == 4:
        return 0.8
    else:
        return 0.6


def get_traffic_risk(dt: datetime) -> float:
    """Traffic risk for a departure time: 0.8 in rush hours, 0.3 otherwise."""
    return 0.8 if is_rush_hour(dt) else 0.3


def get_time_of_day_risk(dt: datetime) -> float:
    """Driving risk for a departure time.

    Returns:
        0.8 at night, 0.6 in the early morning, 0.2 otherwise
    """
    if is_night(dt):
        return 0.8
    elif is_early_morning(dt):
        return 0.6
    else:
        return 0.2
