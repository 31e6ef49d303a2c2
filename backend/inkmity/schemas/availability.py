import re
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List
from datetime import datetime, date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_WEEKDAYS = {"sun", "mon", "tue", "wed", "thu", "fri", "sat"}


class TimeRange(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    def check_hhmm(cls, v: str) -> str:
        if not _HHMM.match(v):
            raise ValueError("expected HH:MM")
        return v

    @model_validator(mode="after")
    def check_order(self) -> "TimeRange":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class AvailabilityUpsert(BaseModel):
    timezone: str = "America/New_York"
    slot_minutes: int = Field(default=60, ge=5, le=480)
    weekly: Dict[str, List[TimeRange]] = Field(default_factory=dict)
    exceptions: Dict[str, List[TimeRange]] = Field(default_factory=dict)

    @field_validator("timezone")
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone {v!r}")
        return v

    @field_validator("weekly")
    def weekday_keys(cls, v: Dict[str, List[TimeRange]]) -> Dict[str, List[TimeRange]]:
        unknown = set(v) - _WEEKDAYS
        if unknown:
            raise ValueError(f"unknown weekday keys: {sorted(unknown)}")
        return v

    @field_validator("exceptions")
    def date_keys(cls, v: Dict[str, List[TimeRange]]) -> Dict[str, List[TimeRange]]:
        for key in v:
            date.fromisoformat(key)
        return v


class AvailabilityResponse(AvailabilityUpsert):
    artist_id: str

    model_config = {
        "from_attributes": True
    }


class Slot(BaseModel):
    start_at: datetime
    end_at: datetime
