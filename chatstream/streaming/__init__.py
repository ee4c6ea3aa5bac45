"""Streaming pipeline: upstream adapter -> event framer -> event sink."""

from .framer import EventFramer, FramingResult
from .frames import Frame, FrameKind, START_PAYLOAD, split_lines
from .sink import EventSink
from .upstream import ModelBackend, UpstreamStreamAdapter

__all__ = [
    "EventFramer",
    "FramingResult",
    "Frame",
    "FrameKind",
    "START_PAYLOAD",
    "split_lines",
    "EventSink",
    "ModelBackend",
    "UpstreamStreamAdapter",
]
