"""chatstream: streaming chat sessions over server-sent events."""

__version__ = "0.1.0"

__all__ = ["__version__"]
