from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from postplan.streaming.assembler import (
    ScheduleAssembler,
    ScheduleStreamError,
    SseFrameDecoder,
    consume_stream,
    stream_schedule,
)
from postplan.streaming.events import (
    CompleteEvent,
    ErrorEvent,
    RecordEvent,
    ScheduleEvent,
    StartEvent,
    encode_sse,
)
from postplan.streaming.records import iter_document_records


def _transcript(events: list[Any]) -> str:
    return "".join(encode_sse(event) for event in events)


def test_decoder_handles_frames_split_across_chunks() -> None:
    text = _transcript([StartEvent(total_hint=1), RecordEvent(index=0, value={"a": "b"})])
    decoder = SseFrameDecoder()

    events: list[ScheduleEvent] = []
    for offset in range(0, len(text), 3):
        events.extend(decoder.feed(text[offset : offset + 3]))

    assert [event.type for event in events] == ["start", "record"]


def test_decoder_skips_malformed_frames_and_non_data_lines() -> None:
    text = (
        ": keep-alive\n\n"
        "data: {not json}\n\n"
        'data: {"type": "mystery"}\n\n'
        "event: ignored\n"
        'data: {"type": "start", "total_hint": 2}\n\n'
    )
    decoder = SseFrameDecoder()

    events = decoder.feed(text)

    assert [event.type for event in events] == ["start"]
    assert decoder.skipped_frames == 2


def test_decoder_accepts_crlf_and_flushes_unterminated_frame() -> None:
    decoder = SseFrameDecoder()
    events = decoder.feed('data: {"type": "start", "total_hint": 1}\r\n\r\n')
    events += decoder.feed('data: {"type": "error", "message": "late"}')

    assert [event.type for event in events] == ["start"]
    flushed = decoder.flush()
    assert [event.type for event in flushed] == ["error"]
    assert decoder.flush() == []


def test_assembler_places_records_by_index_and_reports_progress() -> None:
    seen: list[str] = []
    assembler = ScheduleAssembler(on_event=lambda event: seen.append(event.type))

    assembler.feed(encode_sse(StartEvent(total_hint=3)))
    assert assembler.progress == (0, 3)

    assembler.feed(encode_sse(RecordEvent(index=1, value="second")))
    assembler.feed(encode_sse(RecordEvent(index=0, value="first")))
    assert assembler.progress == (2, 3)
    assert assembler.records == ["first", "second"]
    assert not assembler.done

    assembler.feed(encode_sse(CompleteEvent(summary={"period": 7})))

    result = assembler.result()
    assert result.records == ["first", "second"]
    assert result.summary == {"period": 7}
    assert result.as_dict() == {"period": 7, "schedule": ["first", "second"]}
    assert seen == ["start", "record", "record", "complete"]


def test_assembler_grows_beyond_total_hint() -> None:
    assembler = ScheduleAssembler()
    assembler.apply(StartEvent(total_hint=1))
    assembler.apply(RecordEvent(index=0, value=0))
    assembler.apply(RecordEvent(index=1, value=1))
    assembler.apply(CompleteEvent())

    assert assembler.result().records == [0, 1]


def test_assembler_keeps_partial_records_on_error() -> None:
    assembler = ScheduleAssembler()
    assembler.feed(
        _transcript(
            [
                StartEvent(total_hint=3),
                RecordEvent(index=0, value={"date": "2026-02-21"}),
                ErrorEvent(message="rate limited"),
                RecordEvent(index=1, value={"date": "late"}),
            ]
        )
    )

    assert assembler.halted
    assert assembler.done
    assert assembler.records == [{"date": "2026-02-21"}]
    with pytest.raises(ScheduleStreamError, match="rate limited"):
        assembler.result()


def test_result_requires_complete_event() -> None:
    assembler = ScheduleAssembler()
    assembler.feed(encode_sse(StartEvent(total_hint=1)))
    assembler.close()

    with pytest.raises(ScheduleStreamError, match="without a complete event"):
        assembler.result()


def test_load_document_uses_shared_extraction(sample_document: str) -> None:
    assembler = ScheduleAssembler()
    assembler.load_document(sample_document)

    result = assembler.result()
    assert result.records == [record.value for record in iter_document_records(sample_document)]
    assert result.summary == {"records_emitted": 3, "records_skipped": 0}


@pytest.mark.asyncio
async def test_consume_stream_stops_after_terminal_event() -> None:
    frames = [
        encode_sse(StartEvent(total_hint=1)),
        encode_sse(RecordEvent(index=0, value=1)),
        encode_sse(CompleteEvent()),
        encode_sse(RecordEvent(index=1, value=2)),
    ]
    consumed: list[str] = []

    async def _chunks():
        for frame in frames:
            consumed.append(frame)
            yield frame

    assembler = await consume_stream(_chunks())

    assert assembler.finalized
    assert assembler.records == [1]
    assert len(consumed) == 3


@pytest.mark.asyncio
async def test_stream_schedule_posts_payload_and_assembles() -> None:
    body = _transcript(
        [
            StartEvent(total_hint=2),
            RecordEvent(index=0, value={"date": "2026-02-21"}),
            RecordEvent(index=1, value={"date": "2026-02-22"}),
            CompleteEvent(summary={"records_emitted": 2}),
        ]
    )
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["payload"] = json.loads(request.content)
        captured["accept"] = request.headers["accept"]
        return httpx.Response(
            200, text=body, headers={"content-type": "text/event-stream"}
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assembler = await stream_schedule(
            client, "http://test/api/v1/schedule/generate", {"period": 7}
        )

    assert captured == {"payload": {"period": 7}, "accept": "text/event-stream"}
    assert [day["date"] for day in assembler.result().records] == ["2026-02-21", "2026-02-22"]


@pytest.mark.asyncio
async def test_stream_schedule_raises_api_error_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404, json={"code": "account_not_found", "message": "Account 'x' not found"}
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ScheduleStreamError) as exc_info:
            await stream_schedule(client, "http://test/generate", {})

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Account 'x' not found"
