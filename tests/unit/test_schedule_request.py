from __future__ import annotations

from datetime import date
from typing import Any

import pytest
from pydantic import ValidationError

from postplan.schedule.request import ScheduleRequest, SlotConfig, plan_days


def _request(day_config: dict[str, Any], period: int = 7) -> ScheduleRequest:
    return ScheduleRequest.model_validate(
        {
            "account_id": "3f2b8c1e-6d4a-4e8b-9a57-0c1d2e3f4a5b",
            "period": period,
            "day_config": day_config,
        }
    )


def test_manual_slot_requires_time() -> None:
    with pytest.raises(ValidationError, match="time is required"):
        SlotConfig.model_validate({"type": "post", "time_mode": "manual"})


def test_slot_validates_time_format_and_slides() -> None:
    with pytest.raises(ValidationError):
        SlotConfig.model_validate({"type": "post", "time_mode": "manual", "time": "25:00"})
    with pytest.raises(ValidationError):
        SlotConfig.model_validate({"type": "carousel", "slides": 11})

    slot = SlotConfig.model_validate({"type": "carousel", "slides": 5, "time": "10:00"})
    assert slot.fixed_time is None
    manual = SlotConfig.model_validate({"type": "reel", "time_mode": "manual", "time": "18:30"})
    assert manual.fixed_time == "18:30"


def test_request_rejects_unknown_period_and_weekday() -> None:
    with pytest.raises(ValidationError):
        _request({"monday": [{"type": "post"}]}, period=10)
    with pytest.raises(ValidationError):
        _request({"someday": [{"type": "post"}]})


def test_plan_days_follows_weekday_config() -> None:
    request = _request(
        {
            "monday": [{"type": "post"}, {"type": "reel"}],
            "friday": [{"type": "story"}],
            "sunday": [],
        },
        period=15,
    )
    # 2026-03-02 is a Monday.
    days = plan_days(request, date(2026, 3, 2))

    assert [day.iso_date for day in days] == [
        "2026-03-02",
        "2026-03-06",
        "2026-03-09",
        "2026-03-13",
        "2026-03-16",
    ]
    assert days[0].weekday == "monday"
    assert [slot.type for slot in days[0].slots] == ["post", "reel"]
    assert request.slots_per_week == 3


def test_plan_days_empty_when_no_slots() -> None:
    request = _request({"tuesday": []})
    assert plan_days(request, date(2026, 3, 2)) == []
