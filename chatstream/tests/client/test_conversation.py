"""ConversationState: send gating, message invariants, history baseline policy."""

from __future__ import annotations

from datetime import datetime

from chatstream.client.conversation import SENDER_AI, SENDER_USER, ConversationState, Message
from chatstream.client.sse import SseEvent
from chatstream.config.defaults import DEFAULT_GREETING, TYPING_PLACEHOLDER
from chatstream.history.codec import encode_history
from chatstream.history.models import Turn


def _clock() -> datetime:
    return datetime(2024, 5, 1, 14, 30)


def test_new_conversation_starts_with_finalized_greeting_and_empty_history():
    state = ConversationState(clock=_clock)
    assert state.messages == [Message(SENDER_AI, DEFAULT_GREETING, "14:30")]
    assert state.history == ()
    assert state.encoded_history() == "[]"
    assert state.in_flight is None


def test_begin_send_appends_user_message_and_placeholder():
    state = ConversationState(greeting=None, clock=_clock)
    calls = []
    state.subscribe(lambda s: calls.append(len(s.messages)))
    reader = state.begin_send("hello")
    assert reader is not None
    assert state.messages == [
        Message(SENDER_USER, "hello", "14:30"),
        Message(SENDER_AI, TYPING_PLACEHOLDER, ""),
    ]
    assert state.is_streaming
    assert state.in_flight == state.messages[-1]
    assert calls == [2]


def test_send_while_streaming_is_a_no_op():
    state = ConversationState(greeting=None, clock=_clock)
    first = state.begin_send("one")
    assert first is not None
    before = list(state.messages)
    assert state.begin_send("two") is None
    assert state.messages == before


def test_blank_send_is_ignored():
    state = ConversationState(greeting=None)
    assert state.begin_send("   ") is None
    assert state.messages == []
    assert not state.is_streaming


def test_only_last_message_is_ever_unfinalized():
    state = ConversationState(clock=_clock)
    for text in ("a", "b"):
        reader = state.begin_send(text)
        reader.handle(SseEvent("message", text.upper()))
        assert [m.finalized for m in state.messages[:-1]] == [True] * (len(state.messages) - 1)
        reader.handle(SseEvent("end", encode_history(state.history + (
            Turn(role="user", text=text),
            Turn(role="model", text=text.upper()),
        ))))
    assert all(m.finalized for m in state.messages)
    assert len(state.history) == 4


def test_end_with_shorter_history_keeps_baseline_but_finalizes():
    prior = (Turn(role="user", text="q"), Turn(role="model", text="a"))
    state = ConversationState(greeting=None, history=prior, clock=_clock)
    reader = state.begin_send("next")
    reader.handle(SseEvent("message", "reply"))
    reader.handle(SseEvent("end", "[]"))
    assert state.history == prior
    assert state.messages[-1] == Message(SENDER_AI, "reply", "14:30")
    assert not state.is_streaming


def test_unsubscribe_stops_notifications():
    state = ConversationState(greeting=None)
    calls = []
    unsubscribe = state.subscribe(lambda s: calls.append(1))
    unsubscribe()
    state.begin_send("x")
    assert calls == []
