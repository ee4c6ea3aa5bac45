"""Conversation history types and their wire codec."""

from .codec import decode_history, encode_history, history_to_wire
from .models import ROLES, History, Role, Turn, extend_history

__all__ = [
    "Role",
    "ROLES",
    "Turn",
    "History",
    "extend_history",
    "encode_history",
    "decode_history",
    "history_to_wire",
]
