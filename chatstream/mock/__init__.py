"""Mock backend package for offline runs and tests."""

from .client import MockBackend

__all__ = ["MockBackend"]
