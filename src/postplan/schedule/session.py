"""Wire a schedule request to a streaming session."""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from postplan.observability.logger import ObservabilityLogger
from postplan.observability.metrics import MetricsRegistry
from postplan.providers.base import GenerationProvider
from postplan.schedule.accounts import AccountProfile
from postplan.schedule.prompt import build_schedule_prompt
from postplan.schedule.request import ScheduleRequest, plan_days
from postplan.settings import PostplanSettings
from postplan.streaming.driver import ScheduleStreamSession


class EmptySchedulePlanError(ValueError):
    """Raised when no day in the requested period has any slot."""


def open_schedule_session(
    request: ScheduleRequest,
    account: AccountProfile,
    provider: GenerationProvider,
    settings: PostplanSettings,
    *,
    start: date,
    metrics: Optional[MetricsRegistry] = None,
) -> ScheduleStreamSession:
    """Plan the period, build the prompt and return an idle session.

    The completion summary echoes the account profile, the period and the
    generation timestamp. A session ledger is attached when
    ``settings.LEDGER_ENABLED`` is set.
    """
    days = plan_days(request, start)
    if not days:
        raise EmptySchedulePlanError("No posts configured for any day in the period")

    prompt = build_schedule_prompt(account, days, start, array_key=settings.ARRAY_KEY)
    session = ScheduleStreamSession(
        provider,
        prompt=prompt,
        total_hint=len(days),
        context={
            "account": account.echo(),
            "period": request.period,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
        array_key=settings.ARRAY_KEY,
        metrics=metrics,
    )
    if settings.LEDGER_ENABLED:
        session.observer = ObservabilityLogger(
            session.session_id,
            slug=account.username,
            base_dir=Path(settings.RUNS_DIR),
        )
    return session


__all__ = ["EmptySchedulePlanError", "open_schedule_session"]
