"""
Client stream reader: the per-request state machine on the receiving side.

States::

    idle --start--> started --data--> accumulating --complete--> completed
      \\                                                              |
       `------------ error / transport failure ------------.       end
                                                            v        v
                                                            closed <-'

- ``data`` frames (named ``data`` or the default ``message`` event) append to
  an accumulator and the in-flight message is overwritten with the full join.
- ``complete`` replaces the accumulator with its payload, which is
  authoritative.
- ``end`` adopts the decoded history as the new baseline and finalizes the
  message.
- ``error`` or a transport failure finalizes the message with whatever text
  was accumulated, or the error placeholder when there is none.
- Unknown events are ignored; everything after close is ignored.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

from ..base.logging import get_logger, log_event
from ..config.defaults import ERROR_PLACEHOLDER
from ..history.codec import decode_history
from .sse import DEFAULT_EVENT, SseEvent

if TYPE_CHECKING:  # pragma: no cover
    from .conversation import ConversationState


class ReaderState(str, Enum):
    IDLE = "idle"
    STARTED = "started"
    ACCUMULATING = "accumulating"
    COMPLETED = "completed"
    CLOSED = "closed"


_DATA_EVENTS = frozenset(("data", DEFAULT_EVENT))


class ClientStreamReader:
    """Apply one response's events to a ``ConversationState``."""

    def __init__(self, state: "ConversationState", *, logger: Optional[logging.Logger] = None) -> None:
        self._state = state
        self._chunks: Tuple[str, ...] = ()
        self._logger = logger or get_logger("client.reader")
        self.status = ReaderState.IDLE
        self.error: Optional[str] = None

    @property
    def closed(self) -> bool:
        return self.status is ReaderState.CLOSED

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def handle(self, event: SseEvent) -> None:
        """Apply one event; a no-op once the reader is closed."""
        if self.closed:
            return
        name = event.event
        if name == "start":
            self.status = ReaderState.STARTED
        elif name in _DATA_EVENTS:
            self._chunks = self._chunks + (event.data,)
            self.status = ReaderState.ACCUMULATING
            self._state.update_in_flight(self.text)
        elif name == "complete":
            self._chunks = (event.data,)
            self.status = ReaderState.COMPLETED
            self._state.update_in_flight(self.text)
        elif name == "end":
            self._on_end(event.data)
        elif name == "error":
            self._on_error(event.data)

    def _on_end(self, payload: str) -> None:
        self._state.adopt_history(decode_history(payload))
        text = self.text
        self._close(text or ERROR_PLACEHOLDER)
        log_event(self._logger, "client.stream.end", level=logging.DEBUG, chars=len(text))

    def _on_error(self, payload: str) -> None:
        self.error = payload
        self._fail_with(payload)

    def fail(self, reason: str) -> None:
        """Treat a transport failure like an ``error`` frame."""
        if self.closed:
            return
        self.error = reason
        self._fail_with(reason)

    def _fail_with(self, reason: str) -> None:
        self._close(self.text or ERROR_PLACEHOLDER)
        log_event(
            self._logger,
            "client.stream.error",
            level=logging.WARNING,
            reason=reason[:260],
            partial_chars=len(self.text),
        )

    def _close(self, final_text: str) -> None:
        self.status = ReaderState.CLOSED
        self._state.finalize_in_flight(final_text)


__all__ = ["ClientStreamReader", "ReaderState"]
