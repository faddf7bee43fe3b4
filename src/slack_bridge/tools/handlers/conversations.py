"""Tool reading conversation history by any reference form."""

from __future__ import annotations

from typing import Any

from slack_bridge.references import build_permalink, resolve_reference, validate_ts
from slack_bridge.unreads.aggregator import simplify_message

from .. import Tool, ToolContext, ToolResult, ToolSpec, json_result, register_tool
from ._args import get_int, get_str

_MAX_LIMIT = 1000
_DEFAULT_LIMIT = 50


@register_tool(
    ToolSpec(
        name="conversations_history",
        description="Read messages from a conversation. 'channel' accepts a channel ID, #channel, @user (their DM) or a message permalink; permalinks and 'thread_ts' return that thread instead of the channel timeline.",
        parameters={
            "type": "object",
            "properties": {
                "channel": {"type": "string", "description": "C0123456789, #general, @alice or a permalink URL"},
                "thread_ts": {"type": "string", "description": "Thread root timestamp, e.g. 1700000000.123456"},
                "limit": {"type": "integer", "minimum": 1, "maximum": _MAX_LIMIT, "default": _DEFAULT_LIMIT},
                "cursor": {"type": "string", "description": "Cursor from a previous call."},
            },
            "required": ["channel"],
        },
    )
)
class ConversationsHistoryTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        token = get_str(kwargs, "channel", required=True)
        thread_ts = get_str(kwargs, "thread_ts")
        if thread_ts:
            validate_ts(thread_ts)
        limit = get_int(kwargs, "limit", _DEFAULT_LIMIT, maximum=_MAX_LIMIT)
        cursor = get_str(kwargs, "cursor")

        resolver = await context.bridge.resolver()
        target = resolve_reference(token, resolver)
        thread_ts = thread_ts or target.thread_ts or target.ts or ""

        client = context.bridge.client
        if thread_ts:
            messages, next_cursor = await client.replies(target.channel_id, thread_ts, limit=limit, cursor=cursor)
        else:
            messages, next_cursor = await client.history(target.channel_id, limit=limit, cursor=cursor)

        simplified = [simplify_message(m, resolver) for m in messages]
        workspace_url = context.bridge.workspace_url
        if workspace_url:
            for message in simplified:
                if message.get("ts"):
                    message["permalink"] = build_permalink(
                        workspace_url, target.channel_id, message["ts"], message.get("thread_ts")
                    )

        return json_result(
            {
                "channel_id": target.channel_id,
                "channel_name": resolver.channel_name(target.channel_id),
                "thread_ts": thread_ts or None,
                "messages": simplified,
                "next_cursor": next_cursor,
            }
        )
