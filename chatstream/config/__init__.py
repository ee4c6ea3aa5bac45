"""Unified configuration layer for the chatstream service.

Goals
-----
* Centralize defaults (model, prompt policy, timeouts, CORS).
* Merge sources in a predictable order:
    1. Built-in defaults
    2. Optional external config file (JSON or YAML) pointed to by
       CHATSTREAM_CONFIG_FILE
    3. Environment variables (CHATSTREAM_*, GEMINI_API_KEY / GOOGLE_API_KEY)
    4. In-code overrides passed to the helper
* Produce one immutable ``ServiceSettings`` value that is handed to the app
  factory and from there to the session handler. Request handling never reads
  process state.

Environment Variables
---------------------
CHATSTREAM_MODEL, CHATSTREAM_PROMPT_STYLE, CHATSTREAM_START_TIMEOUT_SECONDS,
CHATSTREAM_USE_MOCKS, CHATSTREAM_CORS_ORIGINS, GEMINI_API_KEY (alias
GOOGLE_API_KEY).

External Config File (Optional)
-------------------------------
```
model: gemini-2.5-flash-preview-04-17
prompt_style: formatted
start_timeout_seconds: 20
```

Public API
----------
* ServiceSettings
* get_service_settings(overrides: dict | None = None) -> ServiceSettings
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .defaults import (
    CHATSTREAM_CORS_DEFAULT_ORIGINS,
    GEMINI_DEFAULT_MODEL,
    PROMPT_STYLE_VERBATIM,
    PROMPT_STYLES,
    UPSTREAM_START_TIMEOUT_SECONDS,
)
from .env import env_flag, get_api_key, is_placeholder

try:  # Optional YAML support
    import yaml  # type: ignore
except Exception:  # pragma: no cover
    yaml = None  # type: ignore


@dataclass(frozen=True)
class ServiceSettings:
    """Resolved configuration for one service instance.

    Attributes:
        api_key: Credential for the Gemini backend (``None`` when unset).
        model: Gemini model identifier.
        prompt_style: ``"verbatim"`` or ``"formatted"``; see SessionHandler.
        start_timeout_seconds: Deadline for the upstream call to start streaming.
        use_mocks: Route sessions to the scripted mock backend.
        cors_origins: Allowed CORS origins.
    """

    api_key: Optional[str] = None
    model: str = GEMINI_DEFAULT_MODEL
    prompt_style: str = PROMPT_STYLE_VERBATIM
    start_timeout_seconds: float = UPSTREAM_START_TIMEOUT_SECONDS
    use_mocks: bool = False
    cors_origins: Tuple[str, ...] = tuple(
        o for o in CHATSTREAM_CORS_DEFAULT_ORIGINS.split(",") if o
    )

    def __post_init__(self) -> None:
        if self.prompt_style not in PROMPT_STYLES:
            raise ValueError(
                f"prompt_style must be one of {PROMPT_STYLES}, got {self.prompt_style!r}"
            )
        if self.start_timeout_seconds <= 0:
            raise ValueError("start_timeout_seconds must be positive")


_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses KEY=VALUE lines, ignoring comments and blank lines. Existing
    environment variables win unless they look like placeholders.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    """Read the optional config file; unreadable or non-mapping content yields {}."""
    path = os.getenv("CHATSTREAM_CONFIG_FILE")
    if not path:
        return {}
    p = Path(path)
    if not p.is_file():
        return {}
    text = p.read_text(encoding="utf-8")
    data: Any = {}
    try:
        data = json.loads(text)
    except ValueError:
        if yaml is not None:
            try:
                data = yaml.safe_load(text) or {}
            except yaml.YAMLError:
                data = {}
    return data if isinstance(data, dict) else {}


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    api_key = get_api_key()
    if api_key:
        out["api_key"] = api_key
    if model := os.getenv("CHATSTREAM_MODEL"):
        out["model"] = model.strip()
    if style := os.getenv("CHATSTREAM_PROMPT_STYLE"):
        out["prompt_style"] = style.strip().lower()
    if timeout := os.getenv("CHATSTREAM_START_TIMEOUT_SECONDS"):
        try:
            out["start_timeout_seconds"] = float(timeout)
        except ValueError:
            pass
    use_mocks = env_flag("CHATSTREAM_USE_MOCKS")
    if use_mocks is not None:
        out["use_mocks"] = use_mocks
    if origins := os.getenv("CHATSTREAM_CORS_ORIGINS"):
        out["cors_origins"] = origins
    return out


def _coerce(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unknown keys and normalize field types."""
    known = {f.name for f in fields(ServiceSettings)}
    out = {k: v for k, v in cfg.items() if k in known}
    origins = out.get("cors_origins")
    if isinstance(origins, str):
        out["cors_origins"] = tuple(o.strip() for o in origins.split(",") if o.strip())
    elif isinstance(origins, (list, tuple)):
        out["cors_origins"] = tuple(str(o) for o in origins)
    if "start_timeout_seconds" in out:
        out["start_timeout_seconds"] = float(out["start_timeout_seconds"])
    if isinstance(out.get("use_mocks"), str):
        out["use_mocks"] = out["use_mocks"].strip().lower() in {"1", "true", "yes", "on"}
    elif "use_mocks" in out:
        out["use_mocks"] = bool(out["use_mocks"])
    return out


def get_service_settings(overrides: Optional[Dict[str, Any]] = None) -> ServiceSettings:
    """Return merged settings.

    Merge order (later wins): defaults -> external config -> env vars -> overrides
    """
    _load_dotenv_once()
    cfg: Dict[str, Any] = {}
    cfg |= _load_external_config()
    cfg |= _env_overrides()
    if overrides:
        cfg |= overrides
    return ServiceSettings(**_coerce(cfg))


__all__ = ["ServiceSettings", "get_service_settings"]
