"""Structured logging utilities for the chatstream service and client.

Rationale:
- One place configures the shared ``chatstream`` logger (JSON lines on
  stderr by default); modules ask for children via ``get_logger``.
- Events are emitted as a single JSON object per line through ``log_event``.
- ``normalized_log_event`` guarantees a fixed key set (``phase``,
  ``attempt``, ``error_code``, ``emitted``) so session lifecycle logs can be
  filtered uniformly regardless of which component wrote them.

Environment:
- ``CHATSTREAM_LOG_LEVEL`` overrides the level (DEBUG, INFO, WARNING, ...).
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from .log_support import JsonFormatter, LogContext


BASE_LOGGER_NAME = "chatstream"
_BASE_LOGGER_ATTR = "_chatstream_logger_initialized"
_CONSOLE_HANDLER_ATTR = "_chatstream_console_handler"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    """Parse a logging level string into an integer constant.

    Accepts common names (DEBUG, INFO, WARNING, ERROR, CRITICAL) case-insensitively.
    Falls back to ``default`` on unknown values.
    """
    if not value:
        return default
    mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return mapping.get(value.strip().upper(), default)


def _make_formatter(json_mode: bool) -> logging.Formatter:
    return JsonFormatter() if json_mode else logging.Formatter(_PLAIN_FORMAT)


def _ensure_base_logger(json_mode: bool, level: int) -> logging.Logger:
    """Initialize (once) and return the shared ``chatstream`` logger."""
    logger = logging.getLogger(BASE_LOGGER_NAME)
    desired_level = _parse_level(os.getenv("CHATSTREAM_LOG_LEVEL"), default=level)
    if getattr(logger, _BASE_LOGGER_ATTR, False):
        if logger.level != desired_level:
            logger.setLevel(desired_level)
        for existing in list(logger.handlers):
            if not getattr(existing, _CONSOLE_HANDLER_ATTR, False):
                continue
            stream_obj = getattr(existing, "stream", None)
            if stream_obj is None or getattr(stream_obj, "closed", False):
                # pytest's capsys swaps stderr between tests; rebind to the live stream
                logger.removeHandler(existing)
                with contextlib.suppress(Exception):
                    existing.close()
                logger.addHandler(_console_handler(json_mode, desired_level))
                continue
            existing.setLevel(desired_level)
            with contextlib.suppress(Exception):
                existing.setStream(sys.stderr)
        return logger

    logger.setLevel(desired_level)
    logger.handlers[:] = [_console_handler(json_mode, desired_level)]
    logger.propagate = False
    setattr(logger, _BASE_LOGGER_ATTR, True)
    return logger


def _console_handler(json_mode: bool, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_make_formatter(json_mode))
    setattr(handler, _CONSOLE_HANDLER_ATTR, True)
    return handler


def get_logger(name: str = BASE_LOGGER_NAME, json_mode: bool = True, level: int = logging.INFO) -> logging.Logger:
    """Return a logger under the shared ``chatstream`` hierarchy.

    Child loggers carry no handlers of their own and propagate to the base
    logger, so every line is emitted exactly once.
    """
    base_logger = _ensure_base_logger(json_mode=json_mode, level=level)
    if name == BASE_LOGGER_NAME:
        return base_logger
    if not name.startswith(BASE_LOGGER_NAME + "."):
        name = f"{BASE_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    level: int = logging.INFO,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Emit a structured log event as a single JSON line.

    Keys whose value is ``None`` are dropped unless ``keep_none`` is set.
    The context (if any) is merged shallowly before ``fields``.
    """
    if not logger.isEnabledFor(level):
        return
    payload: Dict[str, Any] = {"event": event}
    if ctx:
        payload |= ctx.to_dict()
    if keep_none:
        payload.update(fields)
    else:
        payload.update({k: v for k, v in fields.items() if v is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


REQUIRED_NORMALIZED_KEYS = (
    "phase",
    "attempt",
    "error_code",
    "emitted",
)


def normalized_log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    phase: str,
    attempt: int | None = None,
    error_code: str | None = None,
    emitted: int | bool | None = None,
    level: int = logging.INFO,
    **extra_fields: Any,
) -> None:
    """Emit a log event carrying the normalized key set.

    ``error_code`` is omitted when ``None``; the other required keys are always
    present (``null`` when unknown). Extra fields never overwrite the
    normalized ones.
    """
    base_fields: Dict[str, Any] = {
        "phase": phase,
        "attempt": attempt,
        "error_code": error_code,
        "emitted": emitted,
    }
    if error_code is None:
        base_fields.pop("error_code")
    for k, v in extra_fields.items():
        if v is None or k in base_fields:
            continue
        base_fields[k] = v
    log_event(logger, event, ctx, level=level, keep_none=True, **base_fields)


__all__ = [
    "LogContext",
    "get_logger",
    "log_event",
    "normalized_log_event",
    "REQUIRED_NORMALIZED_KEYS",
]
