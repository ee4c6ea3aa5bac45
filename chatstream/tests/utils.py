"""Shared testing utilities for the chatstream suite.

Exports:
    - fragments(items): async iterator over a fixed list of fragments
    - failing_fragments(items, error): same, then raises ``error``
    - drain(sink): collect everything written to an ``EventSink``
    - parse_body(text): split an event-stream body into ``SseEvent`` values
"""
from __future__ import annotations

from typing import AsyncIterator, Iterable, List

from chatstream.client.sse import SseEvent, SseLineSplitter, iter_events
from chatstream.streaming.sink import EventSink


async def fragments(items: Iterable[str]) -> AsyncIterator[str]:
    for item in items:
        yield item


async def failing_fragments(items: Iterable[str], error: BaseException) -> AsyncIterator[str]:
    for item in items:
        yield item
    raise error


async def drain(sink: EventSink) -> bytes:
    return b"".join([chunk async for chunk in sink.drain()])


def parse_body(text: str) -> List[SseEvent]:
    """Parse a full response body the way ``ChatClient`` feeds it."""
    splitter = SseLineSplitter()
    return list(iter_events(splitter.feed(text) + splitter.flush()))
