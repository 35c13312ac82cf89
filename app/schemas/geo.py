"""Shared geographic value types."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class Coordinate(BaseModel):
    """Geographic coordinate (WGS84)."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    address: Optional[str] = None


class TimeWindow(BaseModel):
    """Half-open period a prediction applies to.

    When only one end carries a timezone, the naive end is read as UTC so the
    two can be compared. Chronological order is checked by the consumer (see
    DemandPredictionService), which reports a violation as InvalidInputError.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("end")
    @classmethod
    def match_start_timezone(cls, end: datetime, info: ValidationInfo) -> datetime:
        start = info.data.get("start")
        if start is None:
            return end
        start_aware = start.tzinfo is not None
        end_aware = end.tzinfo is not None
        if start_aware and not end_aware:
            return end.replace(tzinfo=timezone.utc)
        if end_aware and not start_aware:
            return end.astimezone(timezone.utc).replace(tzinfo=None)
        return end
