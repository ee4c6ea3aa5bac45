"""Errors parts package public surface.

Prefer importing from `chatstream.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .upstream_error import UpstreamError
from .sink_closed_error import SinkClosedError
from .classification import classify_exception

__all__ = ["ErrorCode", "UpstreamError", "SinkClosedError", "classify_exception"]
