"""Upstream stream adapter: one model turn as a lazy sequence of fragments.

Purpose
-------
Wrap an opaque ``ModelBackend`` so the event framer sees a uniform contract:

- exactly one backend call per adapter (no retry, batching or caching);
- a lazy, finite, non-restartable async sequence of non-empty text fragments
  in emission order;
- any failure (start rejected, start timeout, network error mid-stream, or a
  response with no text at all) surfaces once as ``UpstreamError`` and no
  fragment follows it;
- the backend stream is closed on every exit path, including abandonment by
  a cancelled consumer.

Backends
--------
A backend only knows how to open its native stream and how to read text out
of one native chunk; lifecycle, classification and logging live here.
"""
from __future__ import annotations

import asyncio
import time
from contextlib import suppress
from typing import Any, AsyncIterable, AsyncIterator, Optional, Protocol, runtime_checkable

from ..base.errors import ErrorCode, UpstreamError, classify_exception
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..config.defaults import UPSTREAM_START_TIMEOUT_SECONDS
from ..history.models import History

EMPTY_RESPONSE_ERROR = "upstream returned an empty response"


@runtime_checkable
class ModelBackend(Protocol):
    """Opaque model backend producing one native chunk stream per call."""

    name: str
    model: str

    async def open_stream(self, prompt: str, history: History) -> AsyncIterable[Any]:
        """Issue the upstream call and return its chunk stream."""
        ...

    def extract_text(self, chunk: Any) -> Optional[str]:
        """Return the text carried by ``chunk`` (``None``/empty when none)."""
        ...


async def _close_quietly(obj: Any) -> None:
    """Best-effort ``aclose``/``close`` on a native stream object."""
    aclose = getattr(obj, "aclose", None)
    if callable(aclose):
        with suppress(Exception):
            await aclose()
        return
    close = getattr(obj, "close", None)
    if callable(close):
        with suppress(Exception):
            close()


class UpstreamStreamAdapter:
    """Expose one backend call as an async iterator of text fragments."""

    def __init__(
        self,
        backend: ModelBackend,
        prompt: str,
        history: History,
        *,
        start_timeout_seconds: float = UPSTREAM_START_TIMEOUT_SECONDS,
        ctx: Optional[LogContext] = None,
        logger=None,
    ) -> None:
        self._backend = backend
        self._prompt = prompt
        self._history = history
        self._start_timeout = start_timeout_seconds
        self.ctx = ctx or LogContext(backend=backend.name, model=backend.model)
        self._logger = logger or get_logger("chatstream.upstream")
        self._consumed = False
        self.emitted = 0
        self.time_to_first_fragment_ms: Optional[float] = None

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _failure(self, exc: BaseException, phase: str) -> UpstreamError:
        if isinstance(exc, UpstreamError):
            err = exc
        else:
            err = UpstreamError(
                code=classify_exception(exc),
                message=str(exc) or exc.__class__.__name__,
                backend=self._backend.name,
                model=self._backend.model,
                raw=exc,
            )
        normalized_log_event(
            self._logger,
            "upstream.error",
            self.ctx,
            phase=phase,
            error_code=err.code.value,
            emitted=self.emitted,
            error=err.message[:260],
        )
        return err

    async def _start(self) -> AsyncIterable[Any]:
        normalized_log_event(
            self._logger,
            "upstream.start",
            self.ctx,
            phase="start",
            history_turns=len(self._history),
        )
        try:
            return await asyncio.wait_for(
                self._backend.open_stream(self._prompt, self._history),
                timeout=self._start_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise self._failure(
                UpstreamError(
                    code=ErrorCode.TIMEOUT,
                    message=f"upstream did not start within {self._start_timeout}s",
                    backend=self._backend.name,
                    model=self._backend.model,
                    raw=exc,
                ),
                phase="start",
            ) from exc
        except Exception as exc:
            err = self._failure(exc, phase="start")
            if err is exc:
                raise
            raise err from exc

    async def fragments(self) -> AsyncIterator[str]:
        """Yield the turn's non-empty text fragments in emission order.

        Raises:
            UpstreamError: once, on any upstream failure.
            RuntimeError: when iterated a second time.
        """
        if self._consumed:
            raise RuntimeError("upstream fragment sequence cannot be restarted")
        self._consumed = True
        t0 = time.perf_counter()
        stream = await self._start()
        iterator = stream.__aiter__()
        try:
            while True:
                try:
                    chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                except Exception as exc:
                    err = self._failure(exc, phase="mid_stream")
                    if err is exc:
                        raise
                    raise err from exc
                text = self._backend.extract_text(chunk)
                if not text:
                    continue
                if self.time_to_first_fragment_ms is None:
                    self.time_to_first_fragment_ms = (time.perf_counter() - t0) * 1000.0
                self.emitted += 1
                yield text
            if self.emitted == 0:
                raise self._failure(
                    UpstreamError(
                        code=ErrorCode.SERVER_ERROR,
                        message=EMPTY_RESPONSE_ERROR,
                        backend=self._backend.name,
                        model=self._backend.model,
                    ),
                    phase="finalize",
                )
        finally:
            await _close_quietly(iterator)
            if iterator is not stream:
                await _close_quietly(stream)


__all__ = [
    "ModelBackend",
    "UpstreamStreamAdapter",
    "EMPTY_RESPONSE_ERROR",
]
