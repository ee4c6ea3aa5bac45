"""Cooperative cancellation primitives (public API facade).

``CancellationToken`` is created per streaming session and cancelled when the
client disconnects; ``CancelledError`` is raised by code that observes it.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
