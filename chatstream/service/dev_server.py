from __future__ import annotations

import os
import uvicorn

from ..config.defaults import CHATSTREAM_DEFAULT_HOST, CHATSTREAM_DEFAULT_PORT


def _parse_port(value: str | None, default: int) -> int:
    """Best-effort parse of a port from string, falling back to a sane default."""
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _reload_enabled(value: str | None) -> bool:
    # Unset means direct CLI usage: reload on.
    if value is None:
        return True
    return value.strip().lower() == "true"


def main() -> None:
    """Start the development server for the chatstream FastAPI app.

    - CHATSTREAM_HOST: interface to bind (default "127.0.0.1")
    - CHATSTREAM_PORT: port to bind (default 8000)
    - CHATSTREAM_RELOAD: "true"/"false" to toggle auto-reload (default True)

    Settings for the app itself are read once by ``create_app`` through
    ``get_service_settings``.
    """
    host = os.getenv("CHATSTREAM_HOST", CHATSTREAM_DEFAULT_HOST)
    port = _parse_port(os.getenv("CHATSTREAM_PORT"), CHATSTREAM_DEFAULT_PORT)

    uvicorn.run(
        "chatstream.service.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=_reload_enabled(os.getenv("CHATSTREAM_RELOAD")),
    )


if __name__ == "__main__":
    main()
