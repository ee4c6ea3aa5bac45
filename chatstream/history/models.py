"""
Conversation history domain types.

A ``Turn`` is one authored message; a ``History`` is the ordered tuple of
turns (oldest first) that the client sends with each request and receives
back, extended by two turns, in the ``end`` frame.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

# Turn roles understood by the model backend.
Role = Literal["user", "model"]
ROLES: Tuple[str, ...] = ("user", "model")


@dataclass(frozen=True)
class Turn:
    """One authored message in a conversation.

    Attributes:
        role: ``"user"`` for the human side, ``"model"`` for the backend.
        text: The full text of the turn.
    """

    role: Role
    text: str


History = Tuple[Turn, ...]


def extend_history(history: History, prompt: str, reply: str) -> History:
    """Return ``history`` with the user prompt and the model reply appended."""
    return (*history, Turn(role="user", text=prompt), Turn(role="model", text=reply))


__all__ = ["Role", "ROLES", "Turn", "History", "extend_history"]
