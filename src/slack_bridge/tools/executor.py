"""Tool execution helpers."""

from __future__ import annotations

import json
import logging
from typing import Any

from slack_bridge.errors import AmbiguousError, BridgeError

from . import ToolContext, ToolExecutionError, ToolResult, get_tool_entry

logger = logging.getLogger(__name__)


def error_result(exc: BridgeError) -> ToolResult:
    """Render an expected failure as a structured error result."""

    payload: dict[str, Any] = {"error": str(exc), "type": exc.__class__.__name__}
    if isinstance(exc, AmbiguousError):
        payload["candidates"] = list(exc.candidates)
    return ToolResult(content=json.dumps(payload, ensure_ascii=False), is_error=True)


async def execute_tool(name: str, arguments: str | dict[str, Any], *, context: ToolContext) -> ToolResult:
    """
    Execute the registered tool ``name`` with ``arguments``.

    ``arguments`` may be a JSON string (as provided by the agent) or a parsed
    mapping. The helper normalises the payload, instantiates the tool class,
    and returns its :class:`ToolResult`. Expected failures
    (:class:`~slack_bridge.errors.BridgeError`) come back as error results;
    anything else is wrapped in :class:`ToolExecutionError`.
    """

    entry = get_tool_entry(name)
    if entry is None:
        raise ToolExecutionError(f"Unknown tool '{name}'")

    if isinstance(arguments, str):
        try:
            parsed_args = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as exc:
            raise ToolExecutionError(f"Invalid JSON arguments for tool '{name}': {exc}") from exc
    else:
        parsed_args = arguments
    if not isinstance(parsed_args, dict):
        raise ToolExecutionError(f"Arguments for tool '{name}' must be an object")

    tool = entry()
    try:
        return await tool.run(context=context, **parsed_args)
    except BridgeError as exc:
        logger.info("Tool %s returned error: %s", name, exc)
        return error_result(exc)
    except ToolExecutionError:
        raise
    except TypeError as exc:
        raise ToolExecutionError(str(exc)) from exc
    except Exception as exc:  # pragma: no cover - defensive guard
        logger.exception("Tool %s crashed", name)
        raise ToolExecutionError(f"Tool '{name}' execution failed: {exc}") from exc
