"""Typed availability rules stored on a service listing.

Listings persist their rules as JSON; everything that reads them goes
through :class:`AvailabilityRules` so malformed payloads fail at the storage
boundary instead of deep inside the booking flow. Both snake_case and the
camelCase keys produced by the marketplace frontend are accepted.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def _coerce_day(value: Any) -> Any:
    # Only the calendar day matters; "2025-06-01T00:00:00.000Z" -> 2025-06-01
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


class _RulesModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeSlot(_RulesModel):
    start_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(pattern=r"^\d{2}:\d{2}$")


class CustomAvailabilitySlot(_RulesModel):
    date: dt.date
    available: bool
    time_slots: List[TimeSlot] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def only_day(cls, v: Any) -> Any:
        return _coerce_day(v)


class AvailabilityRules(_RulesModel):
    timezone: str = "UTC"
    recurring_availability: Dict[str, List[TimeSlot]] = Field(default_factory=dict)
    blocked_dates: List[dt.date] = Field(default_factory=list)
    custom_availability: List[CustomAvailabilitySlot] = Field(default_factory=list)

    @field_validator("blocked_dates", mode="before")
    @classmethod
    def only_days(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_coerce_day(item) for item in v]
        return v

    @field_validator("recurring_availability", mode="before")
    @classmethod
    def normalize_weekdays(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        normalized: Dict[str, Any] = {}
        for key, slots in v.items():
            day = str(key).strip().lower()
            if day not in WEEKDAYS:
                raise ValueError(f"unknown weekday: {key}")
            if slots is None:
                # null means "no rule for this day", not "closed"
                continue
            normalized[day] = slots
        return normalized

    @classmethod
    def from_storage(cls, raw: Optional[dict]) -> Optional["AvailabilityRules"]:
        """Validate a listing's JSON column; ``None`` means no rules at all."""
        if raw is None:
            return None
        return cls.model_validate(raw)
