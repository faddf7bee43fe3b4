"""Tools for inspecting and refreshing the directory and resolving names."""

from __future__ import annotations

from typing import Any

from .. import Tool, ToolContext, ToolResult, ToolSpec, json_result, register_tool
from ._args import get_bool, get_str


@register_tool(
    ToolSpec(
        name="directory_status",
        description="Report the state of the local users/channels cache: whether it is loaded, where it came from, how old it is and how many records it holds.",
        parameters={"type": "object", "properties": {}},
    )
)
class DirectoryStatusTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        return json_result(context.bridge.directory.status())


@register_tool(
    ToolSpec(
        name="directory_refresh",
        description="Re-fetch users and channels from the workspace. Without 'force', a fresh cache is kept and no remote calls are made.",
        parameters={
            "type": "object",
            "properties": {"force": {"type": "boolean", "default": False}},
        },
    )
)
class DirectoryRefreshTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        force = get_bool(kwargs, "force")
        await context.bridge.directory.refresh(force=force)
        return json_result(context.bridge.directory.status())


@register_tool(
    ToolSpec(
        name="channels_resolve",
        description="Resolve a channel reference (#name, @user for a DM, or a channel ID) to its channel ID.",
        parameters={
            "type": "object",
            "properties": {"channel": {"type": "string", "description": "#general, @alice or C0123456789"}},
            "required": ["channel"],
        },
    )
)
class ChannelsResolveTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        token = get_str(kwargs, "channel", required=True)
        resolver = await context.bridge.resolver()
        channel_id = resolver.resolve_channel(token)
        return json_result({"channel_id": channel_id, "name": resolver.channel_name(channel_id)})


@register_tool(
    ToolSpec(
        name="users_resolve",
        description="Resolve a user reference (@handle, handle or user ID) to the user's ID, handle and real name.",
        parameters={
            "type": "object",
            "properties": {"user": {"type": "string", "description": "@alice or U0123456789"}},
            "required": ["user"],
        },
    )
)
class UsersResolveTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        token = get_str(kwargs, "user", required=True)
        resolver = await context.bridge.resolver()
        user_id = resolver.resolve_user(token)
        user = resolver.user(user_id)
        return json_result(
            {
                "user_id": user_id,
                "handle": user.handle if user else None,
                "real_name": user.real_name if user else None,
                "deleted": user.deleted if user else None,
            }
        )
