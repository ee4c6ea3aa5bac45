"""Line-oriented server-sent events parser.

Implements the event-stream interpretation rules browsers apply to
``text/event-stream`` bodies, fed one line at a time (line terminators
already removed):

- a blank line dispatches the pending event, if it has any data;
- lines starting with ``:`` are comments;
- ``field: value`` strips exactly one leading space from the value;
- multiple ``data`` lines are joined with ``\\n``;
- an event without an ``event`` field is a ``message`` event;
- a pending event with no terminating blank line at end of stream is
  discarded.

Lines end only at ``\\r\\n``, ``\\r`` or ``\\n``. ``SseLineSplitter`` cuts
decoded body text on exactly those, so characters such as U+2028 stay
inside the line that carries them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

DEFAULT_EVENT = "message"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class SseEvent:
    """One dispatched event."""

    event: str = DEFAULT_EVENT
    data: str = ""


class SseLineSplitter:
    """Cut a stream of text chunks into event-stream lines."""

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> List[str]:
        """Return the lines completed by ``text``; the remainder stays buffered."""
        self._buffer += text
        lines: List[str] = []
        pos = 0
        while True:
            m = _LINE_BREAK.search(self._buffer, pos)
            if m is None:
                break
            # a trailing CR may be the first half of a CRLF split across chunks
            if m.group() == "\r" and m.end() == len(self._buffer):
                break
            lines.append(self._buffer[pos:m.start()])
            pos = m.end()
        self._buffer = self._buffer[pos:]
        return lines

    def flush(self) -> List[str]:
        """End of stream: emit a CR-terminated tail, drop an unterminated one."""
        tail, self._buffer = self._buffer, ""
        return [tail[:-1]] if tail.endswith("\r") else []


class SseParser:
    """Incremental parser; keeps only the pending event between lines."""

    def __init__(self) -> None:
        self._event = ""
        self._data: List[str] = []

    def feed_line(self, line: str) -> Optional[SseEvent]:
        """Consume one line; return the event it completes, if any."""
        if line == "":
            return self._dispatch()
        if line.startswith(":"):
            return None
        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        # "id", "retry" and unknown fields are ignored
        return None

    def _dispatch(self) -> Optional[SseEvent]:
        if not self._data:
            self._event = ""
            return None
        ev = SseEvent(event=self._event or DEFAULT_EVENT, data="\n".join(self._data))
        self._event = ""
        self._data = []
        return ev

    def reset(self) -> None:
        """Drop any partially received event (end of stream)."""
        self._event = ""
        self._data = []


def iter_events(lines: Iterable[str]) -> Iterator[SseEvent]:
    """Parse a complete sequence of lines into events."""
    parser = SseParser()
    for line in lines:
        ev = parser.feed_line(line)
        if ev is not None:
            yield ev


__all__ = ["DEFAULT_EVENT", "SseEvent", "SseLineSplitter", "SseParser", "iter_events"]
