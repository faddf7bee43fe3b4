"""
Import side-effects for tool handlers.

Every module imported here should register itself with the tool registry using
the :func:`slack_bridge.tools.register_tool` decorator.
"""

from __future__ import annotations

# Import concrete tools so module-level decorators execute on import.
from . import canvases, channels, conversations, directory, unreads  # noqa: F401
