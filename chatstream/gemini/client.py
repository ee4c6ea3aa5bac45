"""GeminiBackend: the production model backend.

Uses google-generativeai (google-generativeai>=0.8.0) ``GenerativeModel``
chat sessions. Each call rebuilds the chat from the client-held history, so
the backend itself is stateless across requests.
"""

from __future__ import annotations

from typing import Any, AsyncIterable, Optional

try:
    import google.generativeai as genai  # type: ignore
except Exception:  # pragma: no cover
    genai = None  # type: ignore

from ..base.constants import MISSING_API_KEY_ERROR, SDK_NOT_INSTALLED_ERROR
from ..base.errors import ErrorCode, UpstreamError
from ..base.logging import get_logger
from ..config.defaults import GEMINI_DEFAULT_MODEL
from ..history.codec import history_to_wire
from ..history.models import History


class GeminiBackend:
    """Stream one chat turn from Gemini.

    Construction fails fast with ``UpstreamError`` when the SDK is missing or
    no credential was configured, so the session can report it as a single
    ``error`` frame before any upstream traffic.
    """

    name = "gemini"

    def __init__(self, api_key: Optional[str], model: Optional[str] = None) -> None:
        self.model = model or GEMINI_DEFAULT_MODEL
        if genai is None:
            raise UpstreamError(
                code=ErrorCode.INTERNAL,
                message=SDK_NOT_INSTALLED_ERROR,
                backend=self.name,
                model=self.model,
            )
        if not api_key:
            raise UpstreamError(
                code=ErrorCode.AUTH,
                message=MISSING_API_KEY_ERROR,
                backend=self.name,
                model=self.model,
            )
        genai.configure(api_key=api_key)
        self._logger = get_logger("backends.gemini")

    async def open_stream(self, prompt: str, history: History) -> AsyncIterable[Any]:
        """Start a chat seeded with ``history`` and send ``prompt`` streaming."""
        gen_model = genai.GenerativeModel(model_name=self.model)
        chat = gen_model.start_chat(history=history_to_wire(history))
        return await chat.send_message_async(prompt, stream=True)

    def extract_text(self, chunk: Any) -> Optional[str]:
        """Translate a Gemini streaming chunk to a plain text fragment.

        Attempts ``chunk.text`` first. If not present, inspects the first
        candidate's first content part for a ``.text`` field. The SDK raises
        ``ValueError`` from ``.text`` on chunks without text parts (e.g. a
        safety stop); those are treated as carrying no text.
        """
        try:
            txt_attr = chunk.text  # type: ignore[attr-defined]
            if txt_attr:
                return txt_attr
        except AttributeError:
            ...
        except Exception:
            return None
        try:
            candidates = chunk.candidates  # type: ignore[attr-defined]
            if candidates and isinstance(candidates, list):
                parts = candidates[0].content.parts  # type: ignore[attr-defined]
                if parts:
                    txt = parts[0].text  # type: ignore[attr-defined]
                    return txt or None
        except Exception:
            return None
        return None


__all__ = ["GeminiBackend"]
