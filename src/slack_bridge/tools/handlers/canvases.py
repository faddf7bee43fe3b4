"""Canvas tools."""

from __future__ import annotations

from typing import Any

from slack_bridge.canvases import DEFAULT_OPERATION, VALID_OPERATIONS

from .. import Tool, ToolContext, ToolResult, ToolSpec, json_result, register_tool
from ._args import get_str


@register_tool(
    ToolSpec(
        name="canvases_create",
        description="Create a new canvas from markdown content.",
        parameters={
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "content": {"type": "string", "description": "Markdown body."},
            },
            "required": ["content"],
        },
    )
)
class CanvasesCreateTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        result = await context.bridge.canvases.create(get_str(kwargs, "title"), get_str(kwargs, "content"))
        return json_result(result)


@register_tool(
    ToolSpec(
        name="canvases_edit",
        description="Edit a canvas: insert markdown at the start or end, before or after a section, replace content, or delete a section.",
        parameters={
            "type": "object",
            "properties": {
                "canvas_id": {"type": "string"},
                "operation": {"type": "string", "enum": list(VALID_OPERATIONS), "default": DEFAULT_OPERATION},
                "content": {"type": "string", "description": "Markdown body."},
                "section_id": {
                    "type": "string",
                    "description": "Required for insert_before, insert_after and delete.",
                },
            },
            "required": ["canvas_id"],
        },
    )
)
class CanvasesEditTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        result = await context.bridge.canvases.edit(
            get_str(kwargs, "canvas_id"),
            get_str(kwargs, "content"),
            operation=get_str(kwargs, "operation") or None,
            section_id=get_str(kwargs, "section_id") or None,
        )
        return json_result(result)


@register_tool(
    ToolSpec(
        name="canvases_sections_lookup",
        description="Find section IDs in a canvas, optionally only those containing some text.",
        parameters={
            "type": "object",
            "properties": {
                "canvas_id": {"type": "string"},
                "contains_text": {"type": "string"},
            },
            "required": ["canvas_id"],
        },
    )
)
class CanvasesSectionsLookupTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        result = await context.bridge.canvases.sections_lookup(
            get_str(kwargs, "canvas_id"),
            get_str(kwargs, "contains_text") or None,
        )
        return json_result(result)


@register_tool(
    ToolSpec(
        name="canvases_read",
        description="Read a canvas's metadata and full markdown content.",
        parameters={
            "type": "object",
            "properties": {"canvas_id": {"type": "string"}},
            "required": ["canvas_id"],
        },
    )
)
class CanvasesReadTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        result = await context.bridge.canvases.read(get_str(kwargs, "canvas_id"))
        return json_result(result)
