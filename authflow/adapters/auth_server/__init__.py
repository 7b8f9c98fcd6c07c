"""Account service adapters."""

from .http import HttpAuthClient

__all__ = ["HttpAuthClient"]
