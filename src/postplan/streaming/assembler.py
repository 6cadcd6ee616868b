"""Client-side reconstruction of a schedule from the event stream."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Iterable, Optional, assert_never

import httpx
from pydantic import ValidationError

from postplan.streaming.events import (
    SSE_DATA_PREFIX,
    SSE_FRAME_SEPARATOR,
    CompleteEvent,
    ErrorEvent,
    RecordEvent,
    ScheduleEvent,
    StartEvent,
    parse_event,
)
from postplan.streaming.records import DEFAULT_ARRAY_KEY, IncrementalRecordExtractor

logger = logging.getLogger(__name__)


class ScheduleStreamError(RuntimeError):
    """Raised when a schedule stream fails or cannot be opened."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(slots=True)
class SseFrameDecoder:
    """Split a text stream into ``data:`` frames and parse each as an event.

    Frames may arrive split across arbitrary chunk boundaries; the incomplete
    tail is kept until its blank-line terminator arrives. Frames that do not
    parse as events are skipped.
    """

    _pending: str = field(default="", init=False)
    skipped_frames: int = field(default=0, init=False)

    def feed(self, chunk: str) -> list[ScheduleEvent]:
        if not chunk:
            return []
        buffer = (self._pending + chunk).replace("\r\n", "\n")
        frames = buffer.split(SSE_FRAME_SEPARATOR)
        self._pending = frames.pop()
        return self._parse_frames(frames)

    def flush(self) -> list[ScheduleEvent]:
        """Parse whatever is left once the transport has closed."""
        remainder, self._pending = self._pending, ""
        if not remainder.strip():
            return []
        return self._parse_frames([remainder])

    def _parse_frames(self, frames: Iterable[str]) -> list[ScheduleEvent]:
        events: list[ScheduleEvent] = []
        for frame in frames:
            for line in frame.split("\n"):
                if not line.startswith(SSE_DATA_PREFIX):
                    continue
                try:
                    events.append(parse_event(line[len(SSE_DATA_PREFIX) :]))
                except ValidationError:
                    self.skipped_frames += 1
                    logger.debug("Skipping malformed event line: %.80s", line)
        return events


@dataclass(slots=True)
class GeneratedSchedule:
    """Finalized result of a schedule stream."""

    records: list[Any]
    summary: dict[str, Any]

    def as_dict(self, array_key: str = DEFAULT_ARRAY_KEY) -> dict[str, Any]:
        payload = dict(self.summary)
        payload[array_key] = list(self.records)
        return payload


class ScheduleAssembler:
    """Rebuild the ordered record collection for progressive rendering."""

    def __init__(self, on_event: Optional[Callable[[ScheduleEvent], None]] = None) -> None:
        self.on_event = on_event
        self.total: Optional[int] = None
        self.summary: dict[str, Any] = {}
        self.error: Optional[str] = None
        self.finalized = False
        self._slots: list[Any] = []
        self._filled: set[int] = set()
        self._decoder = SseFrameDecoder()

    @property
    def completed(self) -> int:
        return len(self._filled)

    @property
    def progress(self) -> tuple[int, Optional[int]]:
        return self.completed, self.total

    @property
    def halted(self) -> bool:
        return self.error is not None

    @property
    def done(self) -> bool:
        return self.finalized or self.halted

    @property
    def records(self) -> list[Any]:
        """Records received so far, in index order."""
        return [self._slots[index] for index in sorted(self._filled)]

    @property
    def skipped_frames(self) -> int:
        return self._decoder.skipped_frames

    def feed(self, chunk: str) -> list[ScheduleEvent]:
        """Consume raw transport text and apply every complete event in it."""
        events = self._decoder.feed(chunk)
        for event in events:
            self.apply(event)
        return events

    def close(self) -> list[ScheduleEvent]:
        events = self._decoder.flush()
        for event in events:
            self.apply(event)
        return events

    def apply(self, event: ScheduleEvent) -> None:
        if self.done:
            logger.debug("Ignoring %s event after stream end", event.type)
            return

        if isinstance(event, StartEvent):
            self.total = event.total_hint
            if len(self._slots) < event.total_hint:
                self._slots.extend([None] * (event.total_hint - len(self._slots)))
        elif isinstance(event, RecordEvent):
            if event.index >= len(self._slots):
                self._slots.extend([None] * (event.index + 1 - len(self._slots)))
            self._slots[event.index] = event.value
            self._filled.add(event.index)
        elif isinstance(event, CompleteEvent):
            self.summary.update(event.summary)
            self.finalized = True
        elif isinstance(event, ErrorEvent):
            self.error = event.message
        else:
            assert_never(event)

        if self.on_event is not None:
            self.on_event(event)

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise ScheduleStreamError(self.error)

    def result(self) -> GeneratedSchedule:
        """Return the finalized schedule; raises if the stream did not complete."""
        self.raise_for_error()
        if not self.finalized:
            raise ScheduleStreamError("Schedule stream ended without a complete event")
        return GeneratedSchedule(records=self.records, summary=dict(self.summary))

    def load_document(self, document: str, array_key: str = DEFAULT_ARRAY_KEY) -> None:
        """Rebuild from a raw generation document instead of an event stream.

        Uses the same extractor as the server so both paths agree record for
        record.
        """
        extractor = IncrementalRecordExtractor(array_key=array_key)
        extracted = extractor.feed(document)
        self.apply(StartEvent(total_hint=len(extracted)))
        for record in extracted:
            self.apply(RecordEvent(index=record.index, value=record.value))
        self.apply(
            CompleteEvent(
                summary={
                    "records_emitted": extractor.records_emitted,
                    "records_skipped": extractor.records_skipped,
                }
            )
        )


async def consume_stream(
    chunks: AsyncIterator[str], assembler: Optional[ScheduleAssembler] = None
) -> ScheduleAssembler:
    """Feed text chunks into an assembler until the stream ends."""
    target = assembler or ScheduleAssembler()
    async for chunk in chunks:
        target.feed(chunk)
        if target.done:
            break
    if not target.done:
        target.close()
    return target


async def stream_schedule(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    *,
    assembler: Optional[ScheduleAssembler] = None,
) -> ScheduleAssembler:
    """POST a schedule request and assemble the streamed response."""
    target = assembler or ScheduleAssembler()
    async with client.stream(
        "POST",
        url,
        json=payload,
        headers={"Accept": "text/event-stream"},
    ) as response:
        if response.status_code >= 400:
            body = await response.aread()
            raise ScheduleStreamError(
                _error_message(body, response.status_code),
                status_code=response.status_code,
            )
        await consume_stream(response.aiter_text(), target)
    return target


def _error_message(body: bytes, status_code: int) -> str:
    try:
        payload = json.loads(body)
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail")
        if isinstance(message, str) and message:
            return message
    return f"Schedule request failed with HTTP {status_code}"


__all__ = [
    "GeneratedSchedule",
    "ScheduleAssembler",
    "ScheduleStreamError",
    "SseFrameDecoder",
    "consume_stream",
    "stream_schedule",
]
