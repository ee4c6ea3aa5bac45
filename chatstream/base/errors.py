"""Unified error taxonomy public surface.

Re-exports the one-class-per-file implementations under
``chatstream.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.upstream_error import UpstreamError
from .errors_parts.sink_closed_error import SinkClosedError
from .errors_parts.classification import classify_exception

__all__ = ["ErrorCode", "UpstreamError", "SinkClosedError", "classify_exception"]
