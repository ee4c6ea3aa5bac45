"""Outgoing byte-stream sink for one streaming session.

The framer writes frames into an ``EventSink``; the HTTP response drains it.
At most ``max_pending`` encoded chunks wait in the sink: a write beyond that
suspends the framer until the response has taken one, so a slow client
slows the upstream read instead of growing the buffer.

Guarantees
----------
- Every write first checks the session's cancellation token and raises
  ``CancelledError`` once the client has gone away.
- ``close`` is idempotent; only the first call has any effect and it returns
  ``True`` exactly once. It never waits, so it is safe from callbacks.
- Writing after close raises ``SinkClosedError``.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional, Union

from ..base.cancellation import CancellationToken
from ..base.errors import SinkClosedError
from .frames import PADDING, Frame

DEFAULT_MAX_PENDING = 64

_CLOSED = None


class EventSink:
    """Single-consumer bounded queue of encoded frames with exactly-once close."""

    def __init__(
        self,
        token: Optional[CancellationToken] = None,
        *,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self._token = token
        # the close marker bypasses the slots
        self._queue: "asyncio.Queue[Optional[bytes]]" = asyncio.Queue()
        self._slots = asyncio.Semaphore(max_pending)
        self._closed = False
        self.frames: List[Frame] = []

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, item: Union[Frame, bytes]) -> None:
        """Enqueue a frame (or the raw padding boundary), waiting for room."""
        if self._closed:
            raise SinkClosedError("write to a closed event sink")
        if self._token is not None:
            self._token.raise_if_cancelled()
        await self._slots.acquire()
        if self._closed:
            self._slots.release()
            raise SinkClosedError("write to a closed event sink")
        if isinstance(item, Frame):
            self.frames.append(item)
            self._queue.put_nowait(item.encode())
        else:
            self._queue.put_nowait(bytes(item))

    async def write_boundary(self) -> None:
        await self.write(PADDING)

    def close(self) -> bool:
        """Mark the end of the stream; returns False if already closed."""
        if self._closed:
            return False
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        return True

    async def drain(self) -> AsyncIterator[bytes]:
        """Yield encoded chunks in write order until the sink is closed."""
        while True:
            chunk = await self._queue.get()
            if chunk is _CLOSED:
                return
            self._slots.release()
            yield chunk


__all__ = ["EventSink", "DEFAULT_MAX_PENDING"]
