"""Event protocol shared by the stream driver and the client assembler."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

SSE_DATA_PREFIX = "data: "
SSE_FRAME_SEPARATOR = "\n\n"


class StartEvent(BaseModel):
    """First event of every session."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["start"] = "start"
    total_hint: int = Field(..., ge=0, description="Number of records requested upfront")


class RecordEvent(BaseModel):
    """One completed array element."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["record"] = "record"
    index: int = Field(..., ge=0, description="Emission order, starting at 0")
    value: Any = Field(..., description="Parsed JSON content of the element")


class CompleteEvent(BaseModel):
    """Terminal event on success."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["complete"] = "complete"
    summary: dict[str, Any] = Field(default_factory=dict)


class ErrorEvent(BaseModel):
    """Terminal event on failure; replaces ``complete``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["error"] = "error"
    message: str


ScheduleEvent = Annotated[
    Union[StartEvent, RecordEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[ScheduleEvent] = TypeAdapter(ScheduleEvent)


def encode_sse(event: StartEvent | RecordEvent | CompleteEvent | ErrorEvent) -> str:
    """Serialize an event as a single server-sent-event frame."""
    return f"{SSE_DATA_PREFIX}{event.model_dump_json()}{SSE_FRAME_SEPARATOR}"


def parse_event(payload: str | bytes) -> ScheduleEvent:
    """Validate one JSON payload into the matching event model.

    Raises ``pydantic.ValidationError`` for malformed JSON or unknown shapes.
    """
    return _EVENT_ADAPTER.validate_json(payload)


def is_terminal(event: ScheduleEvent) -> bool:
    return isinstance(event, (CompleteEvent, ErrorEvent))


__all__ = [
    "CompleteEvent",
    "ErrorEvent",
    "RecordEvent",
    "SSE_DATA_PREFIX",
    "SSE_FRAME_SEPARATOR",
    "ScheduleEvent",
    "StartEvent",
    "encode_sse",
    "is_terminal",
    "parse_event",
]
