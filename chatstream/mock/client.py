"""Deterministic mock backend for offline development and tests.

Purpose
-------
Implement the ``ModelBackend`` contract without network traffic so the
session, HTTP and client layers can be exercised end to end. Selected by
``CHATSTREAM_USE_MOCKS=1`` or by passing a backend factory explicitly.

Behavior
--------
- With a ``script`` the backend streams those chunks verbatim, in order.
- Without one it echoes the prompt back word by word.
- ``start_error`` is raised from ``open_stream`` (the start phase);
  ``error`` is raised after ``fail_after`` chunks (mid-stream).
- Every call is recorded in ``calls`` as ``(prompt, history)``.
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, List, Optional, Sequence, Tuple

from ..base.logging import get_logger
from ..history.models import History


class MockBackend:
    """Backend that replays a fixed script instead of calling a model."""

    def __init__(
        self,
        script: Optional[Sequence[str]] = None,
        *,
        fail_after: Optional[int] = None,
        error: Optional[BaseException] = None,
        start_error: Optional[BaseException] = None,
        delay: float = 0.0,
        name: str = "mock",
        model: str = "mock-model",
    ) -> None:
        self.name = name
        self.model = model
        self._script = list(script) if script is not None else None
        self._fail_after = fail_after
        self._error = error
        self._start_error = start_error
        self._delay = delay
        self.calls: List[Tuple[str, History]] = []
        self.closed = 0
        self._logger = get_logger(f"backends.mock.{name}")

    def _chunks_for(self, prompt: str) -> List[str]:
        if self._script is not None:
            return list(self._script)
        words = prompt.split(" ")
        return [w if i == len(words) - 1 else w + " " for i, w in enumerate(words)]

    async def open_stream(self, prompt: str, history: History) -> AsyncIterator[Any]:
        self.calls.append((prompt, history))
        if self._start_error is not None:
            raise self._start_error
        return self._stream(self._chunks_for(prompt))

    async def _stream(self, chunks: List[str]) -> AsyncIterator[str]:
        try:
            for i, chunk in enumerate(chunks):
                if self._error is not None and self._fail_after is not None and i >= self._fail_after:
                    raise self._error
                if self._delay:
                    await asyncio.sleep(self._delay)
                yield chunk
            if self._error is not None and (self._fail_after is None or self._fail_after >= len(chunks)):
                raise self._error
        finally:
            self.closed += 1

    def extract_text(self, chunk: Any) -> Optional[str]:
        return chunk if isinstance(chunk, str) else None


__all__ = ["MockBackend"]
