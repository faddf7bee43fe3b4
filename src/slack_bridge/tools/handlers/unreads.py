"""Tool summarizing unread conversations."""

from __future__ import annotations

from typing import Any

from slack_bridge.config import unreads as unreads_cfg
from slack_bridge.errors import ToolInputError
from slack_bridge.unreads.aggregator import CHANNEL_TYPE_FILTERS, UnreadQuery

from .. import Tool, ToolContext, ToolResult, ToolSpec, json_result, register_tool
from ._args import get_bool, get_int, get_str


@register_tool(
    ToolSpec(
        name="conversations_unreads",
        description="List conversations with unread messages, most important first: DMs, then group DMs, then channels shared with external organizations, then internal channels. Optionally include the unread messages themselves.",
        parameters={
            "type": "object",
            "properties": {
                "include_messages": {"type": "boolean", "default": False},
                "channel_types": {"type": "string", "enum": list(CHANNEL_TYPE_FILTERS), "default": "all"},
                "max_channels": {"type": "integer", "minimum": 1, "default": unreads_cfg.MAX_CHANNELS},
                "max_messages_per_channel": {"type": "integer", "minimum": 1, "default": unreads_cfg.MAX_MESSAGES},
                "mentions_only": {"type": "boolean", "default": False},
            },
        },
    )
)
class ConversationsUnreadsTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        try:
            query = UnreadQuery(
                include_messages=get_bool(kwargs, "include_messages"),
                channel_types=get_str(kwargs, "channel_types", "all") or "all",
                max_channels=get_int(kwargs, "max_channels", unreads_cfg.MAX_CHANNELS),
                max_messages_per_channel=get_int(kwargs, "max_messages_per_channel", unreads_cfg.MAX_MESSAGES),
                mentions_only=get_bool(kwargs, "mentions_only"),
            )
        except ValueError as exc:
            if isinstance(exc, ToolInputError):
                raise
            raise ToolInputError(str(exc)) from exc

        resolver = await context.bridge.resolver()
        report = await context.bridge.unreads.aggregate(resolver, query)
        return json_result(report.to_dict())
