"""Stream assembly driver turning provider deltas into schedule events."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, AsyncIterator, Mapping, MutableMapping, Optional

from postplan.observability.logger import ObservabilityLogger
from postplan.observability.metrics import MetricsRegistry
from postplan.observability.pricing import cost_from_usage
from postplan.providers.base import GenerationProvider, aclose_iterator
from postplan.streaming.events import (
    CompleteEvent,
    ErrorEvent,
    RecordEvent,
    ScheduleEvent,
    StartEvent,
)
from postplan.streaming.outcome import SessionOutcome, SessionState
from postplan.streaming.records import DEFAULT_ARRAY_KEY, IncrementalRecordExtractor

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Schedule generation failed"


class ScheduleStreamSession:
    """One extraction run over a single upstream generation.

    ``events()`` is single-use: it emits ``start``, one ``record`` per completed
    array element, then exactly one of ``complete`` or ``error``. Closing the
    generator early cancels the session without a terminal event.
    """

    def __init__(
        self,
        source: GenerationProvider,
        *,
        prompt: str,
        total_hint: int,
        context: Optional[Mapping[str, Any]] = None,
        array_key: str = DEFAULT_ARRAY_KEY,
        session_id: Optional[str] = None,
        observer: Optional[ObservabilityLogger] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self.source = source
        self.prompt = prompt
        self.total_hint = total_hint
        self.context: dict[str, Any] = dict(context or {})
        self.session_id = session_id or f"sched-{uuid.uuid4().hex[:12]}"
        self.observer = observer
        self.metrics = metrics
        self._extractor = IncrementalRecordExtractor(array_key=array_key)
        self._usage: dict[str, int] = {}
        self._state: SessionState = "idle"
        self._error: Optional[str] = None
        self._started_at = 0.0
        self._outcome: Optional[SessionOutcome] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def outcome(self) -> Optional[SessionOutcome]:
        return self._outcome

    @property
    def usage(self) -> Mapping[str, int]:
        return dict(self._usage)

    @property
    def model(self) -> str:
        return str(getattr(self.source, "model", "unknown"))

    async def events(self) -> AsyncIterator[ScheduleEvent]:
        if self._state != "idle":
            raise RuntimeError(f"Session {self.session_id} already started")

        self._state = "streaming"
        self._started_at = time.time()
        self._log("session.started", {"total_hint": self.total_hint, "provider": self.source.name})
        logger.info(
            "Schedule session %s started (provider=%s, total_hint=%d)",
            self.session_id,
            self.source.name,
            self.total_hint,
        )

        deltas: Optional[AsyncIterator[Any]] = None
        try:
            yield StartEvent(total_hint=self.total_hint)

            deltas = self.source.stream(self.prompt)
            async for delta in deltas:
                if delta.usage:
                    self._usage = dict(delta.usage)
                for record in self._extractor.feed(delta.text):
                    yield RecordEvent(index=record.index, value=record.value)

            summary = self._build_summary()
            self._state = "completed"
            yield CompleteEvent(summary=summary)
        except Exception as exc:  # noqa: BLE001
            self._state = "failed"
            self._error = str(exc) or DEFAULT_ERROR_MESSAGE
            logger.error(
                "Schedule session %s failed after %d records: %s",
                self.session_id,
                self._extractor.records_emitted,
                self._error,
                exc_info=True,
            )
            yield ErrorEvent(message=self._error)
        finally:
            if self._state == "streaming":
                self._state = "cancelled"
                logger.info(
                    "Schedule session %s cancelled after %d records",
                    self.session_id,
                    self._extractor.records_emitted,
                )
            try:
                if deltas is not None:
                    await aclose_iterator(deltas)
            finally:
                self._finish()

    def _build_summary(self) -> dict[str, Any]:
        summary: dict[str, Any] = dict(self.context)
        summary["usage"] = dict(self._usage)
        summary["records_emitted"] = self._extractor.records_emitted
        summary["records_skipped"] = self._extractor.records_skipped
        summary["cost_usd"] = cost_from_usage(self.model, self._usage)
        return summary

    def _finish(self) -> None:
        outcome = SessionOutcome(
            session_id=self.session_id,
            provider=self.source.name,
            model=self.model,
            state=self._state,
            started_at=self._started_at,
            ended_at=time.time(),
            records_emitted=self._extractor.records_emitted,
            records_skipped=self._extractor.records_skipped,
            usage=dict(self._usage),
            cost_usd=cost_from_usage(self.model, self._usage),
            error=self._error,
        )
        self._outcome = outcome

        if self.metrics is not None:
            self.metrics.record(outcome)

        if self.observer is not None:
            self.observer.record_cost(
                outcome.cost_usd,
                model=outcome.model,
                provider=outcome.provider,
                input_tokens=int(outcome.usage.get("input_tokens", 0)),
                output_tokens=int(outcome.usage.get("output_tokens", 0)),
            )
            self._log(
                f"session.{outcome.state}",
                {
                    "records_emitted": outcome.records_emitted,
                    "records_skipped": outcome.records_skipped,
                    "error": outcome.error,
                },
            )
            self.observer.metric("duration_ms", outcome.duration_ms)
            self.observer.finalize(
                state=outcome.state,
                records_emitted=outcome.records_emitted,
                records_skipped=outcome.records_skipped,
            )

    def _log(self, event: str, data: MutableMapping[str, Any]) -> None:
        if self.observer is not None:
            self.observer.log(event, dict(data))


__all__ = ["DEFAULT_ERROR_MESSAGE", "ScheduleStreamSession"]
