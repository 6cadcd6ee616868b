"""Schedule request shape and day planning."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
PostType = Literal["post", "reel", "carousel", "story", "story_sequence"]
TimeMode = Literal["auto", "manual"]

# Index matches ``date.weekday()``.
WEEKDAYS: tuple[Weekday, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MULTI_FRAME_TYPES: frozenset[str] = frozenset({"carousel", "story_sequence"})


class SlotConfig(BaseModel):
    """One post to request on a given weekday."""

    model_config = ConfigDict(extra="forbid")

    type: PostType = Field(..., description="Kind of post to generate")
    time_mode: TimeMode = Field(
        default="auto", description="'manual' pins the time, 'auto' lets the model choose"
    )
    time: Optional[str] = Field(
        default=None,
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="Fixed publishing time (HH:MM) when time_mode is manual",
    )
    slides: Optional[int] = Field(
        default=None, ge=2, le=10, description="Frame count for carousels and story sequences"
    )

    @model_validator(mode="after")
    def require_manual_time(self) -> "SlotConfig":
        if self.time_mode == "manual" and not self.time:
            raise ValueError("time is required when time_mode is 'manual'")
        return self

    @property
    def fixed_time(self) -> Optional[str]:
        return self.time if self.time_mode == "manual" else None


class ScheduleRequest(BaseModel):
    """Caller-supplied request for one schedule generation."""

    model_config = ConfigDict(extra="forbid")

    account_id: UUID = Field(..., description="Account the schedule is generated for")
    period: Literal[7, 15, 30] = Field(..., description="Number of days covered from today")
    day_config: dict[Weekday, list[SlotConfig]] = Field(
        ..., description="Slots requested per weekday"
    )

    @property
    def slots_per_week(self) -> int:
        return sum(len(slots) for slots in self.day_config.values())


@dataclass(frozen=True, slots=True)
class PlannedDay:
    """A calendar day in the period that has at least one slot."""

    date: date
    weekday: Weekday
    slots: tuple[SlotConfig, ...]

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()


def plan_days(request: ScheduleRequest, start: date) -> list[PlannedDay]:
    """List the days of the period starting at ``start`` that request posts."""
    days: list[PlannedDay] = []
    for offset in range(request.period):
        current = start + timedelta(days=offset)
        weekday = WEEKDAYS[current.weekday()]
        slots = request.day_config.get(weekday) or []
        if slots:
            days.append(PlannedDay(date=current, weekday=weekday, slots=tuple(slots)))
    return days


__all__ = [
    "MULTI_FRAME_TYPES",
    "PlannedDay",
    "PostType",
    "ScheduleRequest",
    "SlotConfig",
    "TimeMode",
    "WEEKDAYS",
    "Weekday",
    "plan_days",
]
