"""
Session handler: one HTTP request in, one framed event stream out.

Purpose
-------
Own the per-request wiring of the streaming pipeline::

    backend -> UpstreamStreamAdapter -> EventFramer -> EventSink -> response

and the policies that belong to the request rather than to any one stage:
prompt defaulting, prompt augmentation (``prompt_style``), history decoding
and backend construction from injected ``ServiceSettings``.

Concurrency
-----------
``SessionStream`` starts one producer task (the framer) when the response
begins iterating it, and drains the sink in the response task. When the
response task is torn down early (client disconnect) the stream cancels the
session token, which in turn cancels the producer task; the framer then
closes the upstream iterator and the sink. A token cancelled by the caller
stops the session the same way. Nothing here is shared between requests.

Failure semantics
-----------------
No path raises to the transport. A backend that cannot be constructed (no
credential, SDK missing) yields a stream consisting of a single ``error``
frame followed by close.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import suppress
from typing import AsyncIterator, Callable, Optional

from ..base.cancellation import CancellationToken
from ..base.errors import UpstreamError, classify_exception
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..config import ServiceSettings
from ..config.defaults import DEFAULT_PROMPT, FORMATTED_PROMPT_TEMPLATE, PROMPT_STYLE_FORMATTED
from ..gemini.client import GeminiBackend
from ..history.codec import decode_history
from ..history.models import History
from ..mock.client import MockBackend
from ..streaming.framer import STATUS_CANCELLED, STATUS_COMPLETE, EventFramer, FramingResult
from ..streaming.sink import EventSink
from ..streaming.upstream import ModelBackend, UpstreamStreamAdapter

BackendFactory = Callable[[ServiceSettings], ModelBackend]

DISCONNECT_REASON = "client disconnected"


def default_backend_factory(settings: ServiceSettings) -> ModelBackend:
    """Build the backend selected by ``settings`` (mock or Gemini)."""
    if settings.use_mocks:
        return MockBackend()
    return GeminiBackend(api_key=settings.api_key, model=settings.model)


def resolve_prompt(prompt: Optional[str]) -> str:
    """Return ``prompt`` or the default prompt when it is missing or blank."""
    if prompt is None or not prompt.strip():
        return DEFAULT_PROMPT
    return prompt


async def _failed_fragments(err: UpstreamError) -> AsyncIterator[str]:
    raise err
    yield  # pragma: no cover - marks this as an async generator


class SessionStream:
    """Async byte iterator over one session's encoded frames.

    Iterate it exactly once (the HTTP response does). ``result`` is populated
    once the producer finishes normally.
    """

    def __init__(
        self,
        *,
        framer: EventFramer,
        sink: EventSink,
        fragments: AsyncIterator[str],
        prompt: str,
        history: History,
        token: CancellationToken,
        ctx: LogContext,
        logger: logging.Logger,
    ) -> None:
        self._framer = framer
        self._sink = sink
        self._fragments = fragments
        self._prompt = prompt
        self._history = history
        self.token = token
        self.ctx = ctx
        self._logger = logger
        self.result: Optional[FramingResult] = None

    @property
    def session_id(self) -> Optional[str]:
        return self.ctx.session_id

    async def _produce(self) -> None:
        t0 = time.perf_counter()
        normalized_log_event(
            self._logger,
            "session.start",
            self.ctx,
            phase="start",
            history_turns=len(self._history),
        )
        try:
            result = await self._framer.run(
                self._fragments, prompt=self._prompt, history=self._history
            )
        except asyncio.CancelledError:
            self._log_cancelled(t0, emitted=None)
            raise
        self.result = result
        latency_ms = (time.perf_counter() - t0) * 1000.0
        if result.status == STATUS_COMPLETE:
            normalized_log_event(
                self._logger,
                "session.end",
                self.ctx,
                phase="finalize",
                emitted=result.fragments,
                data_frames=result.data_frames,
                chars=len(result.text),
                latency_ms=latency_ms,
            )
        elif result.status == STATUS_CANCELLED:
            self._log_cancelled(t0, emitted=result.fragments)
        else:
            err = result.error
            normalized_log_event(
                self._logger,
                "session.error",
                self.ctx,
                phase="finalize",
                error_code=err.code.value if err else None,
                emitted=result.fragments,
                level=logging.WARNING,
                error=err.message[:260] if err else None,
                latency_ms=latency_ms,
            )

    def _log_cancelled(self, t0: float, emitted: Optional[int]) -> None:
        normalized_log_event(
            self._logger,
            "session.cancelled",
            self.ctx,
            phase="mid_stream",
            emitted=emitted,
            reason=self.token.reason or DISCONNECT_REASON,
            latency_ms=(time.perf_counter() - t0) * 1000.0,
        )

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        task = asyncio.create_task(self._produce())
        # a task cancelled before it ever ran never reaches the framer's close
        task.add_done_callback(lambda _t: self._sink.close())
        unregister = self.token.on_cancel(lambda _reason: task.cancel())
        drained = False
        try:
            async for chunk in self._sink.drain():
                yield chunk
            drained = True
        finally:
            if not drained and not task.done():
                self.token.cancel(DISCONNECT_REASON)
            unregister()
            with suppress(asyncio.CancelledError):
                await task


class SessionHandler:
    """Turn ``(prompt, raw_history)`` into a ``SessionStream``.

    Parameters
    ----------
    settings: ServiceSettings
        Resolved configuration; the only source of credentials and policy.
    backend_factory: Optional[BackendFactory]
        Builds one backend per request. Defaults to ``default_backend_factory``.
    """

    def __init__(
        self,
        settings: ServiceSettings,
        backend_factory: Optional[BackendFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._backend_factory = backend_factory or default_backend_factory
        self._logger = logger or get_logger("service.session")

    @property
    def settings(self) -> ServiceSettings:
        return self._settings

    def upstream_prompt(self, prompt: str) -> str:
        """Return the text actually sent upstream for a user ``prompt``."""
        if self._settings.prompt_style == PROMPT_STYLE_FORMATTED:
            return FORMATTED_PROMPT_TEMPLATE.format(prompt=prompt)
        return prompt

    def _build_backend(self, ctx: LogContext) -> "ModelBackend | UpstreamError":
        try:
            backend = self._backend_factory(self._settings)
        except UpstreamError as err:
            return err
        except Exception as exc:
            self._logger.exception("backend construction failed")
            return UpstreamError(
                code=classify_exception(exc),
                message=str(exc) or exc.__class__.__name__,
                backend=ctx.backend or "unknown",
                model=self._settings.model,
                raw=exc,
            )
        ctx.backend = backend.name
        ctx.model = backend.model
        return backend

    def open(
        self,
        prompt: Optional[str],
        raw_history: Optional[str],
        token: Optional[CancellationToken] = None,
    ) -> SessionStream:
        """Prepare a session; nothing is sent upstream until it is iterated."""
        typed = resolve_prompt(prompt)
        history = decode_history(raw_history)
        token = token or CancellationToken()
        ctx = LogContext(session_id=uuid.uuid4().hex)

        built = self._build_backend(ctx)
        if isinstance(built, UpstreamError):
            normalized_log_event(
                self._logger,
                "upstream.error",
                ctx,
                phase="start",
                error_code=built.code.value,
                emitted=0,
                level=logging.WARNING,
                error=built.message[:260],
            )
            fragments: AsyncIterator[str] = _failed_fragments(built)
        else:
            adapter = UpstreamStreamAdapter(
                built,
                self.upstream_prompt(typed),
                history,
                start_timeout_seconds=self._settings.start_timeout_seconds,
                ctx=ctx,
            )
            fragments = adapter.fragments()

        sink = EventSink(token)
        framer = EventFramer(sink, ctx=ctx)
        return SessionStream(
            framer=framer,
            sink=sink,
            fragments=fragments,
            prompt=typed,
            history=history,
            token=token,
            ctx=ctx,
            logger=self._logger,
        )


__all__ = [
    "BackendFactory",
    "SessionHandler",
    "SessionStream",
    "default_backend_factory",
    "resolve_prompt",
]
