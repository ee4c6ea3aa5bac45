"""HTTP service layer: session handling and the FastAPI app factory."""

from .app import create_app
from .session import SessionHandler, SessionStream, default_backend_factory, resolve_prompt

__all__ = [
    "create_app",
    "SessionHandler",
    "SessionStream",
    "default_backend_factory",
    "resolve_prompt",
]
