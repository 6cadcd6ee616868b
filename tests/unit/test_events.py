from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from postplan.streaming.events import (
    CompleteEvent,
    ErrorEvent,
    RecordEvent,
    StartEvent,
    encode_sse,
    is_terminal,
    parse_event,
)


def test_encode_sse_frames_single_data_line() -> None:
    frame = encode_sse(RecordEvent(index=2, value={"date": "2026-02-21"}))

    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    assert frame.count("\n") == 2
    payload = json.loads(frame[len("data: ") :])
    assert payload == {"type": "record", "index": 2, "value": {"date": "2026-02-21"}}


def test_encode_sse_keeps_multiline_values_on_one_line() -> None:
    frame = encode_sse(RecordEvent(index=0, value={"caption": "line one\nline two"}))
    assert frame.count("\n") == 2


def test_parse_event_dispatches_on_type() -> None:
    assert isinstance(parse_event('{"type": "start", "total_hint": 3}'), StartEvent)
    assert isinstance(parse_event('{"type": "record", "index": 0, "value": null}'), RecordEvent)
    assert isinstance(parse_event('{"type": "complete", "summary": {}}'), CompleteEvent)
    error = parse_event('{"type": "error", "message": "boom"}')
    assert isinstance(error, ErrorEvent)
    assert error.message == "boom"


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"type": "progress"}',
        '{"type": "record", "value": 1}',
        '{"type": "start", "total_hint": -1}',
        '{"type": "error", "message": "x", "extra": true}',
    ],
)
def test_parse_event_rejects_unknown_or_malformed_payloads(payload: str) -> None:
    with pytest.raises(ValidationError):
        parse_event(payload)


def test_is_terminal() -> None:
    assert is_terminal(CompleteEvent())
    assert is_terminal(ErrorEvent(message="x"))
    assert not is_terminal(StartEvent(total_hint=1))
    assert not is_terminal(RecordEvent(index=0, value={}))
