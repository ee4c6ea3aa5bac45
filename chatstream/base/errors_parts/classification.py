"""
Error classification helpers mapping exceptions to normalized ErrorCode values.

Implements HTTP status extraction, status-to-code mapping, and message-based
heuristics as a fallback, so failures raised by the Gemini SDK, by httpx, or
by plain Python code all land in the same taxonomy.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Optional

from .error_code import ErrorCode
from .upstream_error import UpstreamError


def _extract_status(exc: BaseException) -> Optional[int]:
    """Attempt to extract an HTTP status code from an exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.code`` (google-api-core exceptions)
    - ``exc.status``
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    for attr in ("status_code", "code", "status"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


_HTTP_STATUS_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION,
    401: ErrorCode.AUTH,
    403: ErrorCode.AUTH,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    422: ErrorCode.VALIDATION,
    429: ErrorCode.RATE_LIMIT,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.TRANSIENT,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.TIMEOUT,
}


_MESSAGE_PATTERNS = (
    (ErrorCode.RATE_LIMIT, ("quota",)),
    (ErrorCode.RATE_LIMIT, ("rate limit",)),
    (ErrorCode.TIMEOUT, ("timeout",)),
    (ErrorCode.TIMEOUT, ("timed out",)),
    (ErrorCode.TIMEOUT, ("deadline",)),
    (ErrorCode.AUTH, ("api key",)),
    (ErrorCode.AUTH, ("unauthorized",)),
    (ErrorCode.AUTH, ("permission denied",)),
    (ErrorCode.NOT_FOUND, ("not found",)),
    (ErrorCode.UNAVAILABLE, ("unavailable",)),
    (ErrorCode.VALIDATION, ("invalid",)),
    (ErrorCode.VALIDATION, ("malformed",)),
    (ErrorCode.SERVER_ERROR, ("internal error",)),
)


def _heuristic_from_message(msg: str) -> Optional[ErrorCode]:
    """Substring heuristic mapping for exceptions without a status code."""
    for code, patterns in _MESSAGE_PATTERNS:
        if all(p in msg for p in patterns):
            return code
    return None


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. UpstreamError passthrough.
        2. Timeout exceptions (sync/async).
        3. HTTP status mapping.
        4. Message substring heuristics.
        5. ``UNKNOWN`` fallback.
    """
    if isinstance(exc, UpstreamError):
        return exc.code
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorCode.TIMEOUT
    status = _extract_status(exc)
    if status is not None and status in _HTTP_STATUS_MAP:
        return _HTTP_STATUS_MAP[status]
    code = _heuristic_from_message(str(exc).lower())
    return code if code is not None else ErrorCode.UNKNOWN


__all__ = [
    "classify_exception",
    "_extract_status",
    "_HTTP_STATUS_MAP",
]
