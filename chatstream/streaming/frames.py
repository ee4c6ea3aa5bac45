"""Protocol frames and their server-sent-event wire encoding.

Wire layout (UTF-8)::

    event: start\ndata: Stream started\n\n
    data: <line>\n            one per non-blank line of a fragment
    \n                        padding boundary after every fragment
    event: complete\ndata: <line 1>\ndata: <line 2>\n\n
    event: end\ndata: <history json>\n\n
    event: error\ndata: {"message": ..., "code": ...}\n\n

``data`` frames are unnamed so EventSource clients receive them as default
``message`` events. The padding boundary is what terminates the event that
the preceding ``data`` lines form; it is not a frame of its own.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping

START_PAYLOAD = "Stream started"
PADDING = b"\n"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class FrameKind(str, Enum):
    """The five frame kinds, in their only legal temporal order."""

    START = "start"
    DATA = "data"
    COMPLETE = "complete"
    END = "end"
    ERROR = "error"


TERMINAL_KINDS = frozenset((FrameKind.END, FrameKind.ERROR))


def split_lines(text: str) -> List[str]:
    """Split on any SSE line terminator (``\\r\\n``, ``\\r`` or ``\\n``)."""
    return _LINE_BREAK.split(text)


@dataclass(frozen=True)
class Frame:
    """One typed unit of the server-to-client event stream."""

    kind: FrameKind
    payload: str

    @classmethod
    def start(cls) -> "Frame":
        return cls(FrameKind.START, START_PAYLOAD)

    @classmethod
    def data(cls, line: str) -> "Frame":
        if _LINE_BREAK.search(line):
            raise ValueError("data frame payload must be a single line")
        return cls(FrameKind.DATA, line)

    @classmethod
    def complete(cls, text: str) -> "Frame":
        return cls(FrameKind.COMPLETE, text)

    @classmethod
    def end(cls, encoded_history: str) -> "Frame":
        return cls(FrameKind.END, encoded_history)

    @classmethod
    def error(cls, payload: Mapping[str, Any]) -> "Frame":
        return cls(FrameKind.ERROR, json.dumps(dict(payload), ensure_ascii=True))

    @property
    def terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS

    def encode(self) -> bytes:
        """Return the exact bytes written to the response for this frame."""
        if self.kind is FrameKind.DATA:
            return f"data: {self.payload}\n".encode("utf-8")
        body = "".join(f"data: {line}\n" for line in split_lines(self.payload))
        return f"event: {self.kind.value}\n{body}\n".encode("utf-8")


__all__ = [
    "START_PAYLOAD",
    "PADDING",
    "FrameKind",
    "TERMINAL_KINDS",
    "Frame",
    "split_lines",
]
