"""Gemini model backend."""

from .client import GeminiBackend

__all__ = ["GeminiBackend"]
