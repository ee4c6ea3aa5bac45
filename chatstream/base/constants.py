"""Base shared constants for upstream backends.

Central location to avoid scattering sentinel strings across backends.

# pragma: allowlist secret
"""
from __future__ import annotations

# Missing credential sentinel
MISSING_API_KEY_ERROR = "missing_api_key"  # pragma: allowlist secret - generic placeholder string, not a real secret

# SDK import failure sentinel
SDK_NOT_INSTALLED_ERROR = "google-generativeai SDK not installed"

# Default HTTP timeouts (seconds) for the streaming client
DEFAULT_HTTP_TIMEOUT = 60.0          # connect/write/pool
DEFAULT_STREAM_HTTP_TIMEOUT = None   # no read timeout while a stream is open

__all__ = [
    "MISSING_API_KEY_ERROR",
    "SDK_NOT_INSTALLED_ERROR",
    "DEFAULT_HTTP_TIMEOUT",
    "DEFAULT_STREAM_HTTP_TIMEOUT",
]
