"""Unit coverage for structured logging utilities and helpers."""

from __future__ import annotations

import json
import logging

from chatstream.base.log_support import JsonFormatter
from chatstream.base.logging import (
    REQUIRED_NORMALIZED_KEYS,
    LogContext,
    get_logger,
    log_event,
    normalized_log_event,
)


def test_get_logger_env_overrides_level(monkeypatch, capsys):
    monkeypatch.setenv("CHATSTREAM_LOG_LEVEL", "ERROR")
    logger = get_logger(name="tests.level", json_mode=True, level=logging.DEBUG)
    # INFO log shouldn't appear
    logger.info("hello")
    out = capsys.readouterr().err
    assert out == ""  # nosec B101 - asserts are appropriate in unit tests
    # ERROR should be emitted as JSON
    logger.error("fail")
    out = capsys.readouterr().err
    data = json.loads(out.strip())
    assert data["level"] == "ERROR"  # nosec B101 - asserts are appropriate in unit tests
    assert data["logger"] == "chatstream.tests.level"


def test_log_event_merges_context_and_drops_none(capsys):
    logger = get_logger(name="tests.event")
    log_event(logger, "session.start", LogContext(session_id="s1", backend="mock"), skipped=None, turns=2)
    data = json.loads(capsys.readouterr().err.strip())
    assert data["event"] == "session.start"
    assert data["session_id"] == "s1" and data["backend"] == "mock"
    assert data["turns"] == 2
    assert "skipped" not in data
    assert "model" not in data


def test_normalized_log_event_includes_required_keys(capsys):
    logger = get_logger(name="tests.normalized")
    ctx = LogContext(backend="mock", model="m", session_id="r1")
    normalized_log_event(
        logger,
        "session.end",
        ctx,
        phase="finalize",
        emitted=3,
        phase_override="ignored",
        extra_field=123,
    )
    data = json.loads(capsys.readouterr().err.strip())
    for k in REQUIRED_NORMALIZED_KEYS:
        if k == "error_code":
            continue
        assert k in data  # nosec B101 - asserts are fine in tests
    assert data["attempt"] is None
    assert data["phase"] == "finalize"
    assert "error_code" not in data
    assert data["extra_field"] == 123


def test_json_formatter_hoists_json_message() -> None:
    """Ensure the formatter hoists JSON message keys without double escaping."""

    formatter = JsonFormatter()
    record = logging.LogRecord(
        name="chatstream.tests.json",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=json.dumps({"backend": "gemini", "event": "upstream.start"}),
        args=(),
        exc_info=None,
    )
    payload = json.loads(formatter.format(record))
    assert payload["backend"] == "gemini"  # nosec B101 - validates hoisting
    assert payload["event"] == "upstream.start"
    assert payload["level"] == "INFO"


def test_child_logger_uses_parent_handler_without_duplicates(capsys) -> None:
    """Verify child loggers propagate to the base handler without duplicate lines."""

    logger = get_logger(name="tests.child", json_mode=True)
    assert logger.handlers == []
    logger.warning("once")
    lines = capsys.readouterr().err.strip().splitlines()
    assert len(lines) == 1

