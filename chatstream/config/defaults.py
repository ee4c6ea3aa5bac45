"""chatstream.config.defaults
==========================

Central place for small, stable default values used across the chatstream
package. These defaults can be overridden via environment variables or an
external configuration file, but provide sensible fallbacks for local
development and tests.

This module intentionally avoids importing from other chatstream packages to
prevent circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Service / HTTP layer ----

# Comma-separated list of allowed origins for the dev server.
CHATSTREAM_CORS_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CHATSTREAM_DEFAULT_HOST = "127.0.0.1"
CHATSTREAM_DEFAULT_PORT = 8000

# ---- Protocol defaults ----

# Prompt used when the request carries none.
DEFAULT_PROMPT = "Say hello!"
# Text shown for a model turn that failed before producing any output.
ERROR_PLACEHOLDER = "[Error occurred]"
# Content of the in-flight message before the first data frame arrives.
TYPING_PLACEHOLDER = "..."
# First message of a fresh conversation (client side only; not part of history).
DEFAULT_GREETING = "Hello! I'm your AI assistant. How can I help you today?"

# ---- Upstream ----

GEMINI_DEFAULT_MODEL = "gemini-2.5-flash-preview-04-17"
# Seconds allowed for the upstream call to return its stream handle.
UPSTREAM_START_TIMEOUT_SECONDS = 30.0

# ---- Prompt policy ----

PROMPT_STYLE_VERBATIM = "verbatim"
PROMPT_STYLE_FORMATTED = "formatted"
PROMPT_STYLES = (PROMPT_STYLE_VERBATIM, PROMPT_STYLE_FORMATTED)

# Instruction wrapped around the user's prompt when prompt_style == "formatted".
FORMATTED_PROMPT_TEMPLATE = (
    "give me quick, easy, short response to this question: {prompt} "
    "response is in markup readme format but do not mention any markup and "
    "start with direct response not explanation and use ```inlinecode```, "
    "```jsx from new line for code blocks, do not use single backticks "
    "anywhere for inline code or other, use # for headings from # for h1 and "
    "## for h2 and so on, for paragraph text use simple text, use *italic*, "
    "**bold**, and ***bold italic*** for emphasis, use - for bullet points, "
    "and 1. for numbered lists. For table use | from a new line and use also "
    "| for columns, use > for block quotes, and use [text](url) for links and "
    "![placeholder](url) for image. Do not use any other formatting or "
    "markdown syntax."
)


__all__ = [
    "CHATSTREAM_CORS_DEFAULT_ORIGINS",
    "CHATSTREAM_DEFAULT_HOST",
    "CHATSTREAM_DEFAULT_PORT",
    "DEFAULT_PROMPT",
    "ERROR_PLACEHOLDER",
    "TYPING_PLACEHOLDER",
    "DEFAULT_GREETING",
    "GEMINI_DEFAULT_MODEL",
    "UPSTREAM_START_TIMEOUT_SECONDS",
    "PROMPT_STYLE_VERBATIM",
    "PROMPT_STYLE_FORMATTED",
    "PROMPT_STYLES",
    "FORMATTED_PROMPT_TEMPLATE",
]
