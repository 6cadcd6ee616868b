"""Incremental record extraction and the schedule event protocol."""

from __future__ import annotations

from postplan.streaming.events import (
    CompleteEvent,
    ErrorEvent,
    RecordEvent,
    ScheduleEvent,
    StartEvent,
    encode_sse,
    parse_event,
)
from postplan.streaming.outcome import SessionOutcome, SessionState
from postplan.streaming.records import (
    ExtractedRecord,
    ExtractionBatch,
    IncrementalRecordExtractor,
    extract_records,
    find_closing_delimiter,
    locate_array_start,
)

__all__ = [
    "CompleteEvent",
    "ErrorEvent",
    "ExtractedRecord",
    "ExtractionBatch",
    "IncrementalRecordExtractor",
    "RecordEvent",
    "ScheduleEvent",
    "SessionOutcome",
    "SessionState",
    "StartEvent",
    "encode_sse",
    "extract_records",
    "find_closing_delimiter",
    "locate_array_start",
    "parse_event",
]
