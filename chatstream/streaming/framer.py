"""Event framer: turn a fragment sequence into protocol frames.

Frame order enforced here::

    start, data*, (complete, end | error)

followed by exactly one close of the sink.

- ``start`` is written once the upstream has produced its first fragment, so
  a turn that fails before producing anything is delivered as a lone
  ``error`` frame.
- Each fragment is split on line boundaries; every line that is non-blank
  after trimming becomes a ``data`` frame (sent untrimmed), and a padding
  boundary follows every fragment whether or not it produced data.
- ``complete`` carries the concatenation of all fragments, with line
  endings normalized to ``\\n``, and is the authoritative text; ``end``
  carries the history extended by the user turn and that same model text.
- An ``UpstreamError`` at any point produces one ``error`` frame; frames
  already written stand.
- A cancelled session stops writing immediately and closes the upstream
  iterator without emitting anything further.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional

from ..base.cancellation import CancelledError
from ..base.errors import UpstreamError, classify_exception
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..history.codec import encode_history
from ..history.models import History, extend_history
from .frames import Frame, split_lines
from .sink import EventSink

STATUS_COMPLETE = "complete"
STATUS_ERROR = "error"
STATUS_CANCELLED = "cancelled"


@dataclass
class FramingResult:
    """Outcome of one ``EventFramer.run`` call, used for session logging."""

    status: str
    text: str = ""
    data_frames: int = 0
    fragments: int = 0
    history: Optional[History] = None
    error: Optional[UpstreamError] = None


class EventFramer:
    """Write one session's frames into an ``EventSink``."""

    def __init__(self, sink: EventSink, *, ctx: Optional[LogContext] = None, logger=None) -> None:
        self._sink = sink
        self.ctx = ctx or LogContext()
        self._logger = logger or get_logger("chatstream.framer")
        self._started = False

    async def _write_start_once(self) -> None:
        if not self._started:
            await self._sink.write(Frame.start())
            self._started = True

    async def _write_fragment(self, fragment: str) -> int:
        written = 0
        for line in split_lines(fragment):
            if line.strip():
                await self._sink.write(Frame.data(line))
                written += 1
        await self._sink.write_boundary()
        return written

    async def run(
        self,
        fragments: AsyncIterator[str],
        *,
        prompt: str,
        history: History,
    ) -> FramingResult:
        """Consume ``fragments`` and frame them; never raises for upstream failures."""
        result = FramingResult(status=STATUS_COMPLETE)
        parts: List[str] = []
        try:
            try:
                async for fragment in fragments:
                    await self._write_start_once()
                    parts.append(fragment)
                    result.fragments += 1
                    result.data_frames += await self._write_fragment(fragment)
                await self._write_start_once()
                # CRLF and CR become LF so complete and end carry the same text
                text = "\n".join(split_lines("".join(parts)))
                updated = extend_history(history, prompt, text)
                await self._sink.write(Frame.complete(text))
                await self._sink.write(Frame.end(encode_history(updated)))
                result.text = text
                result.history = updated
            except UpstreamError as exc:
                await self._fail(result, exc, "".join(parts))
            except CancelledError:
                raise
            except Exception as exc:
                self._logger.exception("framer failed unexpectedly")
                err = UpstreamError(
                    code=classify_exception(exc),
                    message=str(exc) or exc.__class__.__name__,
                    backend=self.ctx.backend or "unknown",
                    model=self.ctx.model,
                    raw=exc,
                )
                await self._fail(result, err, "".join(parts))
        except CancelledError as exc:
            result.status = STATUS_CANCELLED
            result.text = "".join(parts)
            normalized_log_event(
                self._logger,
                "framer.cancelled",
                self.ctx,
                phase="mid_stream",
                emitted=result.fragments,
                level=logging.DEBUG,
                reason=str(exc),
            )
        finally:
            aclose = getattr(fragments, "aclose", None)
            if callable(aclose):
                await aclose()
            self._sink.close()
        return result

    async def _fail(self, result: FramingResult, err: UpstreamError, partial: str) -> None:
        result.status = STATUS_ERROR
        result.error = err
        result.text = partial
        await self._sink.write(Frame.error(err.to_payload()))


__all__ = [
    "EventFramer",
    "FramingResult",
    "STATUS_COMPLETE",
    "STATUS_ERROR",
    "STATUS_CANCELLED",
]
