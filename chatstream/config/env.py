"""chatstream.config.env
=====================

Environment variable names for the upstream credential and small lookup
helpers.

Design Notes
------------
- Gemini has used both ``GEMINI_API_KEY`` and ``GOOGLE_API_KEY``; the
  canonical name comes first in ``API_KEY_ENV_NAMES`` and wins.
- Helpers never raise on unset variables; they return ``None`` and let the
  settings layer decide.
- These helpers are only called while building ``ServiceSettings``; request
  handling never reads the environment.
"""

from __future__ import annotations

import os
from typing import Optional, Tuple

API_KEY_ENV_NAMES: Tuple[str, ...] = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder/test value.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_'. The check is case-insensitive and resilient to surrounding spaces.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or "example" in v
        or v.startswith("test_")
    )


def get_api_key() -> Optional[str]:
    """Return the first non-empty, non-placeholder API key from the environment."""
    for name in API_KEY_ENV_NAMES:
        val = os.getenv(name)
        if val and val.strip() and not is_placeholder(val):
            return val.strip()
    return None


def env_flag(name: str) -> Optional[bool]:
    """Parse a boolean-ish environment variable; ``None`` when unset."""
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


__all__ = [
    "API_KEY_ENV_NAMES",
    "is_placeholder",
    "get_api_key",
    "env_flag",
]
