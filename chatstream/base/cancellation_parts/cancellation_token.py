"""Session cancellation token.

One token is created per streaming session. The event sink polls it before
every write; the session stream registers a callback on it so an external
cancel also interrupts a producer that is waiting on the upstream. Tokens
live on a single event loop, so no locking is involved.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional

from .cancelled_error import CancelledError
from .state import State

DEFAULT_CANCEL_MESSAGE = "session cancelled"

CancelCallback = Callable[[Optional[str]], None]


class CancellationToken:
    """Cooperative cancellation flag with callbacks.

    ``cancel`` takes effect once: the first call records the reason and runs
    the registered callbacks in registration order.
    """

    def __init__(self) -> None:
        self._state = State()
        self._callbacks: List[CancelCallback] = []

    @property
    def cancelled(self) -> bool:
        return self._state.cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._state.reason

    @property
    def cancelled_at(self) -> Optional[float]:
        """``time.monotonic()`` at the moment of cancellation."""
        return self._state.cancelled_at

    def cancel(self, reason: Optional[str] = None) -> bool:
        """Request cancellation; returns False if already cancelled."""
        if self._state.cancelled:
            return False
        self._state.cancelled = True
        self._state.reason = reason
        self._state.cancelled_at = time.monotonic()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)
        return True

    def on_cancel(self, callback: CancelCallback) -> Callable[[], None]:
        """Run ``callback(reason)`` on cancellation; returns an unregister function.

        A callback registered on an already-cancelled token runs immediately.
        """
        if self._state.cancelled:
            callback(self._state.reason)
            return lambda: None
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` carrying the reason if cancelled."""
        if self._state.cancelled:
            raise CancelledError(self._state.reason or DEFAULT_CANCEL_MESSAGE)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"CancellationToken(cancelled={self.cancelled}, reason={self.reason!r})"


__all__ = ["CancellationToken", "DEFAULT_CANCEL_MESSAGE"]
