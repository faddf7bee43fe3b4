from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

from slack_bridge.errors import BridgeError
from slack_bridge.unreads.aggregator import CHANNEL_TYPE_FILTERS, UnreadQuery


def _positive_int(value: str) -> int:
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("value must be a positive integer")
    return ivalue


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m slack_bridge",
        description="Inspect and exercise the workspace bridge from a terminal.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="<command>", required=True)

    subparsers.add_parser("status", help="Load the directory and print cache status.")

    refresh_cmd = subparsers.add_parser("refresh", help="Refresh the directory cache.")
    refresh_cmd.add_argument("--force", action="store_true", help="Refetch even if the cache is fresh.")

    resolve_cmd = subparsers.add_parser("resolve", help="Resolve a #channel, @user or ID.")
    resolve_cmd.add_argument("token")
    resolve_cmd.add_argument("--user", action="store_true", help="Resolve as a user instead of a channel.")

    unreads_cmd = subparsers.add_parser("unreads", help="Show unread conversations.")
    unreads_cmd.add_argument("--messages", action="store_true", help="Include unread messages.")
    unreads_cmd.add_argument("--types", choices=CHANNEL_TYPE_FILTERS, default="all")
    unreads_cmd.add_argument("--max-channels", type=_positive_int, default=None)
    unreads_cmd.add_argument("--max-messages", type=_positive_int, default=None)
    unreads_cmd.add_argument("--mentions-only", action="store_true")

    call_cmd = subparsers.add_parser("call", help="Invoke a registered tool with JSON arguments.")
    call_cmd.add_argument("tool")
    call_cmd.add_argument("arguments", nargs="?", default="{}")

    subparsers.add_parser("tools", help="List registered tools.")
    return parser


async def _with_bridge(fn: Callable[[Any], Awaitable[Any]]) -> Any:
    from slack_bridge.app import Bridge

    async with Bridge.from_config() as bridge:
        return await fn(bridge)


async def _run(args: argparse.Namespace) -> Any:
    if args.command == "status":
        return await _with_bridge(_status)

    if args.command == "refresh":

        async def _refresh(bridge):
            await bridge.directory.refresh(force=args.force)
            return bridge.directory.status()

        return await _with_bridge(_refresh)

    if args.command == "resolve":

        async def _resolve(bridge):
            resolver = await bridge.resolver()
            if args.user:
                return {"user_id": resolver.resolve_user(args.token)}
            return {"channel_id": resolver.resolve_channel(args.token)}

        return await _with_bridge(_resolve)

    if args.command == "unreads":
        from slack_bridge.config import unreads as unreads_cfg

        query = UnreadQuery(
            include_messages=args.messages,
            channel_types=args.types,
            max_channels=args.max_channels or unreads_cfg.MAX_CHANNELS,
            max_messages_per_channel=args.max_messages or unreads_cfg.MAX_MESSAGES,
            mentions_only=args.mentions_only,
        )

        async def _unreads(bridge):
            report = await bridge.unreads.aggregate(await bridge.resolver(), query)
            return report.to_dict()

        return await _with_bridge(_unreads)

    if args.command == "call":
        from slack_bridge.tools import ToolContext
        from slack_bridge.tools.executor import execute_tool

        async def _call(bridge):
            result = await execute_tool(args.tool, args.arguments, context=ToolContext(bridge=bridge))
            payload = json.loads(result.content)
            return {"is_error": result.is_error, "result": payload}

        return await _with_bridge(_call)

    if args.command == "tools":
        from slack_bridge.tools import get_registered_tool_specs

        return [spec.to_schema() for spec in get_registered_tool_specs()]

    raise ValueError(f"unknown command {args.command!r}")


async def _status(bridge) -> dict:
    return bridge.directory.status()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        output = asyncio.run(_run(args))
    except BridgeError as exc:
        print(json.dumps({"error": str(exc), "type": exc.__class__.__name__}), file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0
