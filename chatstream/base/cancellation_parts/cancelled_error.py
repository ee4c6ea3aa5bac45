"""Cancellation error type.

Defines the public ``CancelledError`` raised when a streaming session observes
that its client went away. Distinct from ``asyncio.CancelledError`` so that
cooperative abandonment is not confused with task cancellation.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when a session is cancelled cooperatively.

    Session code maps it to a quiet ``session.cancelled`` log event instead of
    an ``error`` frame: abandoning a stream is an accepted terminal state.
    """


__all__ = ["CancelledError"]
