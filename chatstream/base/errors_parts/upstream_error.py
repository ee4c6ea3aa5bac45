"""
Structured upstream failure exception type.

Wraps backend-specific exceptions with a normalized `ErrorCode` so the event
framer can emit a single ``error`` frame without knowing which SDK failed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .error_code import ErrorCode


@dataclass
class UpstreamError(Exception):
    """Represents a terminal failure of one upstream model turn.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message, sent to the client verbatim.
        backend: Backend key where the error originated (e.g. ``"gemini"``).
        model: Optional model name associated with the failure.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    backend: str
    model: Optional[str] = None
    raw: Optional[BaseException] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.backend}:{self.model or '-'} {self.code.value}: {self.message}"

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON object carried by an ``error`` frame."""
        return {"message": self.message, "code": self.code.value}


__all__ = ["UpstreamError"]
