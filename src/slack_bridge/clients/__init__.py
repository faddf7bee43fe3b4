"""Remote API clients."""

from .slack import SlackClient

__all__ = ["SlackClient"]
