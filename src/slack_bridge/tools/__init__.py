"""
Auto-discovery & registry for tool handlers.

Any module inside ``tools/handlers`` that defines::

    from slack_bridge.tools import register_tool, Tool, ToolSpec

    @register_tool(ToolSpec(...))
    class MyTool(Tool):
        async def run(self, *, context, **kwargs): ...

is picked up automatically at import-time. The outer dispatch layer uses this
registry to advertise tools to the agent and execute tool calls on demand.

Adding a new tool:

1. Create a handler module under ``tools/handlers`` and register it with
   :func:`register_tool`.
2. Return JSON text via :func:`json_result`; raise
   :class:`~slack_bridge.errors.BridgeError` subclasses for expected failures
   so the executor can report them as error results.
3. Cover it in ``tests/tools``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import import_module
from pathlib import Path
from pkgutil import iter_modules
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Type

if TYPE_CHECKING:  # pragma: no cover - type-checking only
    from slack_bridge.app import Bridge

__all__ = [
    "Tool",
    "ToolContext",
    "ToolResult",
    "ToolSpec",
    "ToolExecutionError",
    "build_tool_prompt",
    "get_registered_tool_specs",
    "get_tool_entry",
    "json_result",
    "register_tool",
]


@dataclass(slots=True)
class ToolSpec:
    """Static description of a tool exposed to the agent."""

    name: str
    description: str
    parameters: Dict[str, Any]

    def to_schema(self) -> Dict[str, Any]:
        """Return this spec in the name/description/inputSchema form."""

        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.parameters,
        }


@dataclass(slots=True)
class ToolContext:
    """Runtime handles available to every tool invocation."""

    bridge: "Bridge"


@dataclass(slots=True)
class ToolResult:
    """Normalized tool output returned to the agent."""

    content: str
    is_error: bool = False


class ToolExecutionError(RuntimeError):
    """Raised when a tool fails to execute successfully."""

    pass


class Tool:
    """Base class for concrete tool handlers."""

    spec: ToolSpec

    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        """Execute the tool and return a :class:`ToolResult`."""

        raise NotImplementedError


def json_result(payload: Any) -> ToolResult:
    return ToolResult(content=json.dumps(payload, ensure_ascii=False))


_registry: dict[str, Type[Tool]] = {}
_HANDLERS_IMPORTED = False


def register_tool(spec: ToolSpec):
    """Class decorator that binds ``spec`` to the decorated :class:`Tool`."""

    def decorator(cls: Type[Tool]) -> Type[Tool]:
        if not issubclass(cls, Tool):
            raise TypeError("register_tool expects a Tool subclass")
        if spec.name in _registry:
            raise ValueError(f"Tool with name '{spec.name}' already registered")
        cls.spec = spec
        _registry[spec.name] = cls
        return cls

    return decorator


def get_registered_tool_specs() -> List[ToolSpec]:
    """Return all registered specs."""

    return [entry.spec for entry in _registry.values()]


def get_tool_entry(name: str) -> Type[Tool] | None:
    """Return the registered :class:`Tool` subclass for ``name``."""

    return _registry.get(name)


def build_tool_prompt(specs: Iterable[ToolSpec]) -> str:
    """Render a succinct Markdown description of available tools."""

    lines = ["### Tools", "The assistant can call these tools when helpful:"]
    for spec in specs:
        lines.append(f"- **{spec.name}**: {spec.description}")
    return "\n".join(lines)


def _import_handlers() -> None:
    """Import every handler module exactly once."""

    global _HANDLERS_IMPORTED
    if _HANDLERS_IMPORTED:
        return

    pkg_path = Path(__file__).resolve().parent / "handlers"
    for _, modname, _ in iter_modules([str(pkg_path)]):
        if modname.startswith("_"):
            continue
        import_module(f"{__name__}.handlers.{modname}")

    _HANDLERS_IMPORTED = True


_import_handlers()
