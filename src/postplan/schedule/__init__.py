"""Schedule requests, account profiles and prompt construction."""

from __future__ import annotations

from postplan.schedule.accounts import AccountDirectory, AccountProfile
from postplan.schedule.prompt import build_schedule_prompt
from postplan.schedule.request import (
    PlannedDay,
    ScheduleRequest,
    SlotConfig,
    plan_days,
)
from postplan.schedule.session import EmptySchedulePlanError, open_schedule_session

__all__ = [
    "AccountDirectory",
    "AccountProfile",
    "EmptySchedulePlanError",
    "PlannedDay",
    "ScheduleRequest",
    "SlotConfig",
    "build_schedule_prompt",
    "open_schedule_session",
    "plan_days",
]
