"""Error raised when writing to an event sink that has already been closed."""

from __future__ import annotations


class SinkClosedError(RuntimeError):
    """Raised by ``EventSink.write`` after the sink was closed.

    A closed sink is terminal: the stream it feeds has already been delivered
    its final frame, so any later write indicates a framing bug.
    """


__all__ = ["SinkClosedError"]
