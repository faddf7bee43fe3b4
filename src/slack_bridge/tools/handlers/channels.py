"""Tool listing channels from the cached directory."""

from __future__ import annotations

from typing import Any

from slack_bridge.directory.models import ChannelType
from slack_bridge.errors import ToolInputError

from .. import Tool, ToolContext, ToolResult, ToolSpec, json_result, register_tool
from ._args import get_bool, get_int, get_str

_MAX_LIMIT = 1000
_DEFAULT_LIMIT = 100
_SORTS = ("popularity", "name")


def _parse_types(raw: str) -> set[ChannelType]:
    if not raw:
        return set(ChannelType)
    types: set[ChannelType] = set()
    for token in raw.split(","):
        token = token.strip().removesuffix("_channel")
        if not token:
            continue
        try:
            types.add(ChannelType(token))
        except ValueError as exc:
            raise ToolInputError(
                f"Unknown channel type {token!r}; use public, private, im or mpim"
            ) from exc
    return types


def _parse_cursor(raw: str) -> int:
    if not raw:
        return 0
    if not raw.isdigit():
        raise ToolInputError(f"Invalid cursor: {raw!r}")
    return int(raw)


@register_tool(
    ToolSpec(
        name="channels_list",
        description="List workspace conversations from the local directory cache. Supports filtering by type (public, private, im, mpim), sorting by member count or name, and offset pagination via 'cursor'.",
        parameters={
            "type": "object",
            "properties": {
                "channel_types": {
                    "type": "string",
                    "description": "Comma-separated types: public, private, im, mpim. Defaults to all.",
                },
                "include_archived": {"type": "boolean", "default": False},
                "sort": {"type": "string", "enum": list(_SORTS), "default": "popularity"},
                "limit": {"type": "integer", "minimum": 1, "maximum": _MAX_LIMIT, "default": _DEFAULT_LIMIT},
                "cursor": {"type": "string", "description": "Cursor from a previous call."},
            },
        },
    )
)
class ChannelsListTool(Tool):
    async def run(self, *, context: ToolContext, **kwargs: Any) -> ToolResult:
        types = _parse_types(get_str(kwargs, "channel_types"))
        include_archived = get_bool(kwargs, "include_archived")
        sort = get_str(kwargs, "sort", "popularity") or "popularity"
        if sort not in _SORTS:
            raise ToolInputError(f"'sort' must be one of: {', '.join(_SORTS)}")
        limit = get_int(kwargs, "limit", _DEFAULT_LIMIT, maximum=_MAX_LIMIT)
        offset = _parse_cursor(get_str(kwargs, "cursor"))

        resolver = await context.bridge.resolver()
        channels = [
            c
            for c in resolver.view.snapshot.channels
            if c.type in types and (include_archived or not c.is_archived)
        ]
        if sort == "name":
            channels.sort(key=lambda c: (c.name, c.id))
        else:
            channels.sort(key=lambda c: (-c.member_count, c.name, c.id))

        page = channels[offset : offset + limit]
        next_offset = offset + len(page)
        return json_result(
            {
                "channels": [
                    {
                        "id": c.id,
                        "name": c.name,
                        "type": c.type.value,
                        "topic": c.topic,
                        "purpose": c.purpose,
                        "member_count": c.member_count,
                        "is_ext_shared": c.is_ext_shared,
                        "is_archived": c.is_archived,
                    }
                    for c in page
                ],
                "next_cursor": str(next_offset) if next_offset < len(channels) else "",
                "directory_age_seconds": round(resolver.view.snapshot.age(), 3),
            }
        )
