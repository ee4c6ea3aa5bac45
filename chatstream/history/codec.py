"""
History codec: the wire encoding of conversation history.

Purpose
-------
Serialize a ``History`` for the ``history`` query parameter and the ``end``
frame payload, and parse it back. The encoding is a JSON array in the Gemini
chat-history shape::

    [{"role": "user", "parts": [{"text": "hi"}]},
     {"role": "model", "parts": [{"text": "hello"}]}]

so a decoded history can be handed to the SDK's ``start_chat`` unchanged.

Fallback semantics
------------------
``decode_history`` never raises. Missing input, invalid JSON, a non-array
document, or any entry failing validation (unknown role, no parts, non-string
text) decodes to an empty History: a request must never abort because its
history could not be parsed. Validation is strict per entry rather than
best-effort so that a partially corrupt history is never silently truncated.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..base.logging import get_logger, log_event
from .models import History, Turn

_logger = get_logger("chatstream.history")


class PartDTO(BaseModel):
    """One content part of a wire turn; only text parts are supported."""

    model_config = ConfigDict(extra="ignore")

    text: str


class TurnDTO(BaseModel):
    """Wire representation of a single Turn."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "model"]
    parts: List[PartDTO] = Field(..., min_length=1)

    def to_turn(self) -> Turn:
        return Turn(role=self.role, text="".join(p.text for p in self.parts))


_HISTORY_ADAPTER: TypeAdapter[List[TurnDTO]] = TypeAdapter(List[TurnDTO])


def history_to_wire(history: History) -> List[Dict[str, Any]]:
    """Return the JSON-ready list of wire turns for ``history``."""
    return [{"role": t.role, "parts": [{"text": t.text}]} for t in history]


def encode_history(history: History) -> str:
    """Serialize ``history`` to its wire string (turn order preserved)."""
    return json.dumps(history_to_wire(history), ensure_ascii=True)


def decode_history(raw: Optional[str]) -> History:
    """Parse a wire string into a History; malformed input yields ``()``."""
    if raw is None or not raw.strip():
        return ()
    try:
        dtos = _HISTORY_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        log_event(
            _logger,
            "history.decode.fallback",
            level=logging.DEBUG,
            errors=exc.error_count(),
            raw_len=len(raw),
        )
        return ()
    return tuple(d.to_turn() for d in dtos)


__all__ = [
    "PartDTO",
    "TurnDTO",
    "history_to_wire",
    "encode_history",
    "decode_history",
]
