"""Pytest configuration for the chatstream test suite.

Keeps tests hermetic: credentials and CHATSTREAM_* settings from the
developer's shell never leak into a test.
"""

from __future__ import annotations

from typing import Iterator

import pytest

from chatstream.config import ServiceSettings

_ENV_VARS = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "CHATSTREAM_MODEL",
    "CHATSTREAM_PROMPT_STYLE",
    "CHATSTREAM_START_TIMEOUT_SECONDS",
    "CHATSTREAM_USE_MOCKS",
    "CHATSTREAM_CORS_ORIGINS",
    "CHATSTREAM_CONFIG_FILE",
    "CHATSTREAM_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove chatstream-related variables for the duration of a test."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture()
def mock_settings() -> ServiceSettings:
    """Settings routing every session to the mock backend."""

    return ServiceSettings(use_mocks=True, start_timeout_seconds=5.0)
