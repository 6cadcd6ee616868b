"""Schedule generation endpoint streaming day records as server-sent events."""

from __future__ import annotations

import logging
from contextlib import aclosing
from datetime import date
from pathlib import Path
from typing import AsyncIterator, Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from postplan.api.models import ApiError
from postplan.observability.metrics import get_metrics_registry
from postplan.providers import GenerationProvider, ProviderUnavailableError, create_provider
from postplan.schedule.accounts import AccountDirectory
from postplan.schedule.request import ScheduleRequest
from postplan.schedule.session import EmptySchedulePlanError, open_schedule_session
from postplan.settings import PostplanSettings, get_settings
from postplan.streaming.driver import ScheduleStreamSession
from postplan.streaming.events import encode_sse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schedule"])

ProviderFactory = Callable[[PostplanSettings], GenerationProvider]

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def get_account_directory(
    settings: PostplanSettings = Depends(get_settings),
) -> AccountDirectory:
    return AccountDirectory.from_yaml(Path(settings.ACCOUNTS_FILE))


def get_provider_factory() -> ProviderFactory:
    return create_provider


def get_start_date() -> date:
    return date.today()


@router.post(
    "/schedule/generate",
    response_class=StreamingResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ApiError},
        404: {"model": ApiError},
        503: {"model": ApiError},
    },
)
async def generate_schedule(
    req: ScheduleRequest,
    request: Request,
    settings: PostplanSettings = Depends(get_settings),
    accounts: AccountDirectory = Depends(get_account_directory),
    provider_factory: ProviderFactory = Depends(get_provider_factory),
    start: date = Depends(get_start_date),
) -> StreamingResponse:
    """
    Generate a posting schedule and stream each day as soon as it is complete.

    Events are ``data: <json>`` frames: one ``start``, one ``record`` per day,
    then ``complete`` with the usage summary or ``error``.

    Raises:
        HTTPException: 404 for unknown accounts, 400 when no day has slots,
            503 when no generation provider is configured
    """
    account = accounts.get(req.account_id)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "account_not_found",
                "message": f"Account '{req.account_id}' not found",
            },
        )

    try:
        provider = provider_factory(settings)
    except ProviderUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "provider_unavailable", "message": str(exc)},
        ) from exc

    try:
        session = open_schedule_session(
            req,
            account,
            provider,
            settings,
            start=start,
            metrics=get_metrics_registry(),
        )
    except EmptySchedulePlanError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_payload", "message": str(exc)},
        ) from exc

    logger.info(
        "Streaming schedule for @%s over %d days (session=%s, provider=%s)",
        account.username,
        req.period,
        session.session_id,
        provider.name,
    )
    return StreamingResponse(
        stream_session_events(session, request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def stream_session_events(
    session: ScheduleStreamSession, request: Request
) -> AsyncIterator[str]:
    """Frame session events as SSE, stopping when the client disconnects."""
    async with aclosing(session.events()) as events:
        async for event in events:
            if await request.is_disconnected():
                logger.info("Client disconnected from session %s", session.session_id)
                break
            yield encode_sse(event)
