"""Client side of the session protocol: SSE parsing, stream reader, state."""

from .conversation import SENDER_AI, SENDER_USER, ConversationState, Message
from .reader import ClientStreamReader, ReaderState
from .sse import SseEvent, SseLineSplitter, SseParser, iter_events
from .transport import ChatClient

__all__ = [
    "ChatClient",
    "ClientStreamReader",
    "ConversationState",
    "Message",
    "ReaderState",
    "SENDER_AI",
    "SENDER_USER",
    "SseEvent",
    "SseLineSplitter",
    "SseParser",
    "iter_events",
]
