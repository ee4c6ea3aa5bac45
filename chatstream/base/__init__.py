"""Shared building blocks: errors, cancellation, structured logging."""

from .cancellation import CancellationToken, CancelledError
from .errors import ErrorCode, SinkClosedError, UpstreamError, classify_exception
from .logging import LogContext, get_logger, log_event, normalized_log_event

__all__ = [
    "CancellationToken",
    "CancelledError",
    "ErrorCode",
    "SinkClosedError",
    "UpstreamError",
    "classify_exception",
    "LogContext",
    "get_logger",
    "log_event",
    "normalized_log_event",
]
