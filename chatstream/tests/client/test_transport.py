"""ChatClient over httpx: request shape, streaming, transport failures."""

from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from chatstream.client.conversation import ConversationState
from chatstream.client.transport import ChatClient
from chatstream.config import ServiceSettings
from chatstream.config.defaults import ERROR_PLACEHOLDER
from chatstream.history.codec import decode_history
from chatstream.history.models import Turn
from chatstream.mock.client import MockBackend
from chatstream.service.app import create_app

_SSE = {"content-type": "text/event-stream"}


def _client(handler, state: ConversationState) -> ChatClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatClient("http://chat.test/", state, http_client=http)


def _history_body(prompt: str, reply: str, prior=()) -> str:
    turns = list(prior) + [
        {"role": "user", "parts": [{"text": prompt}]},
        {"role": "model", "parts": [{"text": reply}]},
    ]
    return json.dumps(turns)


def test_send_streams_reply_and_threads_history():
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        prompt = request.url.params["prompt"]
        prior = json.loads(request.url.params["history"])
        body = (
            "event: start\ndata: Stream started\n\n"
            f"data: re:{prompt}\n\n"
            f"event: complete\ndata: re:{prompt}\n\n"
            f"event: end\ndata: {_history_body(prompt, 're:' + prompt, prior)}\n\n"
        )
        return httpx.Response(200, text=body, headers=_SSE)

    state = ConversationState(greeting=None)

    async def _run() -> None:
        async with _client(handler, state) as client:
            assert await client.send("one") is True
            assert await client.send("two") is True

    asyncio.run(_run())

    assert [(r.url.host, r.url.path) for r in requests] == [("chat.test", "/api/generate")] * 2
    assert requests[0].url.params["history"] == "[]"
    assert len(decode_history(requests[1].url.params["history"])) == 2
    assert requests[0].headers["accept"] == "text/event-stream"
    assert [m.content for m in state.messages] == ["one", "re:one", "two", "re:two"]
    assert len(state.history) == 4


def test_http_error_status_finalizes_with_placeholder():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    state = ConversationState(greeting=None)
    asyncio.run(_client(handler, state).send("hi"))
    assert state.messages[-1].content == ERROR_PLACEHOLDER
    assert state.messages[-1].finalized
    assert not state.is_streaming


def test_connection_failure_finalizes_with_placeholder():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    state = ConversationState(greeting=None)
    asyncio.run(_client(handler, state).send("hi"))
    assert state.messages[-1].content == ERROR_PLACEHOLDER
    assert state.history == ()


def test_truncated_stream_keeps_partial_text():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="event: start\ndata: Stream started\n\ndata: half\n\n", headers=_SSE)

    state = ConversationState(greeting=None)
    asyncio.run(_client(handler, state).send("hi"))
    assert state.messages[-1].content == "half"
    assert state.messages[-1].finalized


def test_blank_send_issues_no_request():
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, text="", headers=_SSE)

    state = ConversationState(greeting=None)
    assert asyncio.run(_client(handler, state).send("  ")) is False
    assert calls == []


def test_against_service_app_end_to_end():
    app = create_app(ServiceSettings(), backend_factory=lambda _s: MockBackend(["Hel", "lo\n", "World"]))
    state = ConversationState(greeting=None)

    async def _run() -> None:
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app))
        async with ChatClient("http://testserver", state, http_client=http) as client:
            await client.send("hi")
        await http.aclose()

    asyncio.run(_run())
    assert state.messages[-1].content == "Hello\nWorld"
    assert state.history == (
        Turn(role="user", text="hi"),
        Turn(role="model", text="Hello\nWorld"),
    )


def test_send_while_streaming_issues_no_request():
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, text="", headers=_SSE)

    state = ConversationState(greeting=None)
    assert state.begin_send("first") is not None
    before = list(state.messages)
    assert asyncio.run(_client(handler, state).send("second")) is False
    assert calls == []
    assert state.messages == before


def test_reply_with_unicode_line_separator_survives_end_to_end():
    reply = "one\u2028two\x85three"
    app = create_app(ServiceSettings(), backend_factory=lambda _s: MockBackend([reply]))
    state = ConversationState(greeting=None)

    async def _run() -> None:
        http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app))
        async with ChatClient("http://testserver", state, http_client=http) as client:
            await client.send("hi\u2029there")
        await http.aclose()

    asyncio.run(_run())
    assert state.messages[-1].content == reply
    assert state.history == (
        Turn(role="user", text="hi\u2029there"),
        Turn(role="model", text=reply),
    )


def test_cancelled_send_finalizes_partial_reply_and_reraises():
    async def _body():
        yield b"event: start\ndata: Stream started\n\ndata: par\n\n"
        await asyncio.sleep(10)
        yield b"data: never\n\n"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_body(), headers=_SSE)

    state = ConversationState(greeting=None)

    async def _run() -> None:
        client = _client(handler, state)
        task = asyncio.create_task(client.send("hi"))
        for _ in range(50):
            await asyncio.sleep(0.01)
            if state.messages[-1].content == "par":
                break
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_run())
    assert not state.is_streaming
    assert state.messages[-1].content == "par"
    assert state.messages[-1].finalized
    assert state.begin_send("again") is not None


def test_failing_listener_still_leaves_message_finalized():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="event: start\ndata: Stream started\n\ndata: par\n\n", headers=_SSE)

    state = ConversationState(greeting=None)
    raised = []

    def listener(s: ConversationState) -> None:
        if s.is_streaming and s.messages[-1].content == "par":
            raised.append(True)
            raise RuntimeError("render failed")

    state.subscribe(listener)
    with pytest.raises(RuntimeError, match="render failed"):
        asyncio.run(_client(handler, state).send("hi"))
    assert raised == [True]
    assert not state.is_streaming
    assert state.messages[-1].content == "par"
