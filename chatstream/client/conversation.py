"""
Client-held conversation state.

``ConversationState`` is the only mutable object on the client side. It
owns the rendered message list and the history baseline sent with the next
request, and it is mutated only through ``begin_send`` (user action) and the
``*_in_flight`` / ``adopt_history`` methods called by ``ClientStreamReader``.

Invariants:
- at most one message is in flight, always the last one, and only while
  ``is_streaming`` is set;
- a message's ``timestamp`` is non-empty if and only if it is finalized;
- the history baseline only ever grows.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from ..base.logging import get_logger, log_event
from ..config.defaults import DEFAULT_GREETING, TYPING_PLACEHOLDER
from ..history.codec import encode_history
from ..history.models import History
from .reader import ClientStreamReader

SENDER_USER = "user"
SENDER_AI = "ai"
TIMESTAMP_FORMAT = "%H:%M"

Clock = Callable[[], datetime]
Listener = Callable[["ConversationState"], None]


@dataclass(frozen=True)
class Message:
    """One rendered chat message."""

    sender: str
    content: str
    timestamp: str = ""

    @property
    def finalized(self) -> bool:
        return bool(self.timestamp)


class ConversationState:
    """Messages, history baseline and streaming flag for one conversation."""

    def __init__(
        self,
        greeting: Optional[str] = DEFAULT_GREETING,
        history: Iterable = (),
        *,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock or datetime.now
        self._logger = logger or get_logger("client.conversation")
        self._listeners: List[Listener] = []
        self.history: History = tuple(history)
        self.is_streaming = False
        self.messages: List[Message] = []
        if greeting:
            self.messages.append(Message(SENDER_AI, greeting, self._stamp()))

    def _stamp(self) -> str:
        return self._clock().strftime(TIMESTAMP_FORMAT)

    @property
    def in_flight(self) -> Optional[Message]:
        return self.messages[-1] if self.is_streaming else None

    def encoded_history(self) -> str:
        return encode_history(self.history)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def begin_send(self, text: str) -> Optional[ClientStreamReader]:
        """Start a turn: returns its reader, or ``None`` if the send is ignored.

        Sends are ignored while a response is streaming and for blank input.
        """
        if self.is_streaming or not text.strip():
            return None
        self.messages.append(Message(SENDER_USER, text, self._stamp()))
        self.messages.append(Message(SENDER_AI, TYPING_PLACEHOLDER))
        self.is_streaming = True
        self.notify()
        return ClientStreamReader(self)

    def update_in_flight(self, content: str) -> None:
        if not self.is_streaming:
            return
        self.messages[-1] = replace(self.messages[-1], content=content)
        self.notify()

    def finalize_in_flight(self, content: str) -> None:
        if not self.is_streaming:
            return
        self.messages[-1] = replace(self.messages[-1], content=content, timestamp=self._stamp())
        self.is_streaming = False
        self.notify()

    def adopt_history(self, history: History) -> bool:
        """Replace the baseline unless ``history`` would shrink it."""
        if len(history) < len(self.history):
            log_event(
                self._logger,
                "client.history.rejected",
                level=logging.WARNING,
                baseline_turns=len(self.history),
                received_turns=len(history),
            )
            return False
        self.history = tuple(history)
        return True


__all__ = ["Message", "ConversationState", "SENDER_USER", "SENDER_AI", "TIMESTAMP_FORMAT"]
