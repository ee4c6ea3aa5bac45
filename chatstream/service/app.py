"""
FastAPI application exposing the chatstream session protocol.

Routes
------
- ``GET /api/generate?prompt=&history=``: one model turn as a
  ``text/event-stream`` response (see ``chatstream.streaming.frames`` for the
  wire layout).
- ``GET /api/health``: liveness probe.

The app is built by ``create_app`` from an explicit ``ServiceSettings``;
request handling never consults the environment.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from .. import __version__
from ..config import ServiceSettings, get_service_settings
from .session import BackendFactory, SessionHandler

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def create_app(
    settings: Optional[ServiceSettings] = None,
    *,
    backend_factory: Optional[BackendFactory] = None,
) -> FastAPI:
    """Build the service app.

    Parameters
    ----------
    settings: Optional[ServiceSettings]
        Resolved configuration; ``get_service_settings()`` when omitted.
    backend_factory: Optional[BackendFactory]
        Per-request backend builder; tests inject a ``MockBackend`` here.
    """
    settings = settings or get_service_settings()
    handler = SessionHandler(settings, backend_factory=backend_factory)

    app = FastAPI(title="chatstream", version=__version__)
    app.state.session_handler = handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        """Return a simple response indicating the service is running."""
        return {"ok": True}

    @app.get("/api/generate")
    async def generate(
        prompt: Optional[str] = None,
        history: Optional[str] = None,
    ) -> StreamingResponse:
        """Stream one model turn as server-sent events.

        A missing or blank ``prompt`` falls back to the default prompt; a
        missing or malformed ``history`` is treated as an empty conversation.
        Upstream failures are reported in-band as an ``error`` event, so the
        status code is always 200 once the stream opens.
        """
        stream = handler.open(prompt, history)
        return StreamingResponse(stream, media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)

    return app


__all__ = ["create_app", "SSE_HEADERS", "SSE_MEDIA_TYPE"]
