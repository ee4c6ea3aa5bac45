"""
Async HTTP client for the chatstream service.

Purpose
-------
Drive one ``GET /api/generate`` per user turn with ``httpx.AsyncClient``,
parse the ``text/event-stream`` body line by line and hand each event to the
turn's ``ClientStreamReader``.

Failure semantics
-----------------
Any ``httpx.HTTPError`` (connect failure, non-2xx status, broken stream) is a
transport failure and is reported to the reader, as is a body that ends
before a terminal ``end``/``error`` event. ``send`` never raises for those.
Anything else (task cancellation, a failing state listener) still finalizes
the in-flight message before it propagates.

Timeouts
--------
Connect/write/pool use ``DEFAULT_HTTP_TIMEOUT``; reads are unbounded while a
stream is open, since the model may pause between fragments.
"""
from __future__ import annotations

from typing import Iterable, Optional

import httpx

from ..base.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_STREAM_HTTP_TIMEOUT
from .conversation import ConversationState
from .reader import ClientStreamReader
from .sse import SseLineSplitter, SseParser

GENERATE_PATH = "/api/generate"
INCOMPLETE_STREAM_ERROR = "stream ended before a terminal event"

_SSE_REQUEST_HEADERS = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}


class ChatClient:
    """Send user turns to the service and stream replies into ``state``."""

    def __init__(
        self,
        base_url: str,
        state: Optional[ConversationState] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = base_url.rstrip("/") + GENERATE_PATH
        self.state = state or ConversationState()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT, read=DEFAULT_STREAM_HTTP_TIMEOUT)
        )

    async def send(self, text: str) -> bool:
        """Send ``text`` as the next user turn and stream the reply.

        Returns ``False`` when the send was ignored (blank input or a reply
        already streaming), ``True`` once the reply has been finalized.
        """
        history = self.state.encoded_history()
        reader = self.state.begin_send(text)
        if reader is None:
            return False
        parser = SseParser()
        splitter = SseLineSplitter()
        try:
            async with self._http.stream(
                "GET",
                self._url,
                params={"prompt": text, "history": history},
                headers=_SSE_REQUEST_HEADERS,
            ) as response:
                response.raise_for_status()
                async for chunk in response.aiter_text():
                    self._apply(splitter.feed(chunk), parser, reader)
                    if reader.closed:
                        break
                else:
                    self._apply(splitter.flush(), parser, reader)
        except httpx.HTTPError as exc:
            reader.fail(str(exc) or exc.__class__.__name__)
        finally:
            if not reader.closed:
                parser.reset()
                reader.fail(INCOMPLETE_STREAM_ERROR)
        return True

    @staticmethod
    def _apply(lines: Iterable[str], parser: SseParser, reader: ClientStreamReader) -> None:
        for line in lines:
            event = parser.feed_line(line)
            if event is not None:
                reader.handle(event)
            if reader.closed:
                return

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


__all__ = ["ChatClient", "GENERATE_PATH", "INCOMPLETE_STREAM_ERROR"]
