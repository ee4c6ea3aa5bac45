"""Internal state holder for cancellation tokens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class State:
    """Mutable cancellation record: flag, reason and monotonic timestamp."""

    cancelled: bool = False
    reason: Optional[str] = None
    cancelled_at: Optional[float] = None


__all__ = ["State"]
