"""EventFramer contract: frame order, padding, terminal frames, close-once."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator, List

from chatstream.base.cancellation import CancellationToken
from chatstream.base.errors import ErrorCode, UpstreamError
from chatstream.history.codec import decode_history
from chatstream.history.models import Turn
from chatstream.streaming.framer import (
    STATUS_CANCELLED,
    STATUS_COMPLETE,
    STATUS_ERROR,
    EventFramer,
)
from chatstream.streaming.sink import EventSink
from chatstream.tests.utils import drain, failing_fragments, fragments


def _kinds(sink: EventSink) -> List[str]:
    return [f.kind.value for f in sink.frames]


def test_three_fragments_produce_exact_frames_and_updated_history():
    async def _run():
        sink = EventSink()
        framer = EventFramer(sink)
        result = await framer.run(fragments(["Hel", "lo\n", "World"]), prompt="hi", history=())
        return sink, result, await drain(sink)

    sink, result, body = asyncio.run(_run())

    assert _kinds(sink) == ["start", "data", "data", "data", "complete", "end"]
    assert [f.payload for f in sink.frames[1:4]] == ["Hel", "lo", "World"]
    assert sink.frames[4].payload == "Hello\nWorld"
    assert decode_history(sink.frames[5].payload) == (
        Turn(role="user", text="hi"),
        Turn(role="model", text="Hello\nWorld"),
    )
    assert result.status == STATUS_COMPLETE
    assert result.text == "Hello\nWorld"
    assert result.data_frames == 3
    assert body.startswith(
        b"event: start\ndata: Stream started\n\n"
        b"data: Hel\n\n"
        b"data: lo\n\n"
        b"data: World\n\n"
        b"event: complete\ndata: Hello\ndata: World\n\n"
        b"event: end\ndata: "
    )
    assert sink.closed


def test_blank_fragment_still_writes_padding_and_keeps_untrimmed_lines():
    async def _run():
        sink = EventSink()
        await EventFramer(sink).run(fragments(["  ", " indented"]), prompt="p", history=())
        return sink, await drain(sink)

    sink, body = asyncio.run(_run())
    assert [f.payload for f in sink.frames if f.kind.value == "data"] == [" indented"]
    # start, padding for "  ", data + padding for " indented"
    assert b"data: Stream started\n\n\ndata:  indented\n\n" in body


def test_end_extends_existing_history_in_order():
    prior = (Turn(role="user", text="a"), Turn(role="model", text="b"))

    async def _run():
        sink = EventSink()
        result = await EventFramer(sink).run(fragments(["c2"]), prompt="c", history=prior)
        return result

    result = asyncio.run(_run())
    assert result.history == prior + (Turn(role="user", text="c"), Turn(role="model", text="c2"))


def test_failure_before_any_fragment_is_a_single_error_frame():
    err = UpstreamError(code=ErrorCode.AUTH, message="missing_api_key", backend="gemini")

    async def _run():
        sink = EventSink()
        result = await EventFramer(sink).run(failing_fragments([], err), prompt="p", history=())
        return sink, result, await drain(sink)

    sink, result, body = asyncio.run(_run())
    assert _kinds(sink) == ["error"]
    assert json.loads(sink.frames[0].payload) == {"message": "missing_api_key", "code": "auth"}
    assert body.startswith(b"event: error\n")
    assert result.status == STATUS_ERROR and result.error is err


def test_mid_stream_failure_keeps_sent_frames_and_ends_with_error():
    err = UpstreamError(code=ErrorCode.TRANSIENT, message="reset", backend="gemini")

    async def _run():
        sink = EventSink()
        result = await EventFramer(sink).run(failing_fragments(["par", "tial"], err), prompt="p", history=())
        return sink, result

    sink, result = asyncio.run(_run())
    assert _kinds(sink) == ["start", "data", "data", "error"]
    assert result.text == "partial"
    assert sink.closed


def test_unexpected_exception_is_classified_into_error_frame():
    async def _run():
        sink = EventSink()
        result = await EventFramer(sink).run(
            failing_fragments(["x"], RuntimeError("request timed out")), prompt="p", history=()
        )
        return sink, result

    sink, result = asyncio.run(_run())
    assert _kinds(sink)[-1] == "error"
    assert json.loads(sink.frames[-1].payload)["code"] == "timeout"
    assert result.error is not None and result.error.code is ErrorCode.TIMEOUT


def test_cancellation_stops_writing_and_closes_upstream_iterator():
    token = CancellationToken()
    closed = []

    async def _upstream() -> AsyncIterator[str]:
        try:
            yield "first"
            token.cancel("client disconnected")
            yield "second"
            yield "third"
        finally:
            closed.append(True)

    async def _run():
        sink = EventSink(token)
        result = await EventFramer(sink).run(_upstream(), prompt="p", history=())
        return sink, result

    sink, result = asyncio.run(_run())
    assert result.status == STATUS_CANCELLED
    assert _kinds(sink) == ["start", "data"]
    assert closed == [True]
    assert sink.closed
    # close happened exactly once
    assert sink.close() is False


def test_complete_and_end_agree_on_normalized_line_endings():
    async def _run():
        sink = EventSink()
        result = await EventFramer(sink).run(fragments(["a\r\n", "b\rc"]), prompt="p", history=())
        return sink, result

    sink, result = asyncio.run(_run())
    complete = next(f for f in sink.frames if f.kind.value == "complete")
    end = next(f for f in sink.frames if f.kind.value == "end")
    assert complete.payload == "a\nb\nc"
    assert decode_history(end.payload)[-1] == Turn(role="model", text="a\nb\nc")
    assert result.text == "a\nb\nc"
