"""
Conversation reference parsing.

:func:`parse_reference` classifies a user-supplied token once, producing one
of :class:`RawId`, :class:`ChannelName`, :class:`UserHandle` or
:class:`Permalink`. :func:`resolve_reference` turns that into a
:class:`ConversationTarget`; permalinks carry their channel and message
timestamp directly, everything else goes through the directory resolver.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union
from urllib.parse import parse_qs, urlparse

from slack_bridge.directory.resolver import DirectoryResolver, is_channel_id
from slack_bridge.errors import InvalidReferenceError

_NAME_RE = re.compile(r"^[#@][\w.\-]+$")
_PERMALINK_TS_RE = re.compile(r"^p(\d{10})(\d{6})$")
_TS_RE = re.compile(r"^\d{10}\.\d{6}$")


@dataclass(frozen=True, slots=True)
class RawId:
    channel_id: str


@dataclass(frozen=True, slots=True)
class ChannelName:
    name: str


@dataclass(frozen=True, slots=True)
class UserHandle:
    handle: str


@dataclass(frozen=True, slots=True)
class Permalink:
    channel_id: str
    ts: str | None = None
    thread_ts: str | None = None


Reference = Union[RawId, ChannelName, UserHandle, Permalink]


@dataclass(frozen=True, slots=True)
class ConversationTarget:
    """Where a reference points: a conversation and optionally a message."""

    channel_id: str
    ts: str | None = None
    thread_ts: str | None = None


def _parse_permalink(token: str) -> Permalink:
    url = urlparse(token)
    if url.scheme not in ("http", "https") or not url.netloc:
        raise InvalidReferenceError(f"not a permalink: {token!r}")

    parts = [p for p in url.path.split("/") if p]
    if len(parts) < 2 or parts[0] != "archives":
        raise InvalidReferenceError(f"permalink must look like /archives/<channel>[/p<ts>]: {token!r}")

    channel_id = parts[1]
    if not is_channel_id(channel_id):
        raise InvalidReferenceError(f"permalink has an invalid channel ID: {channel_id!r}")

    ts = None
    if len(parts) >= 3:
        match = _PERMALINK_TS_RE.match(parts[2])
        if not match:
            raise InvalidReferenceError(f"permalink has an invalid message segment: {parts[2]!r}")
        ts = f"{match.group(1)}.{match.group(2)}"
    if len(parts) > 3:
        raise InvalidReferenceError(f"unexpected trailing path in permalink: {token!r}")

    thread_ts = parse_qs(url.query).get("thread_ts", [None])[0]
    if thread_ts is not None and not _TS_RE.match(thread_ts):
        raise InvalidReferenceError(f"permalink has an invalid thread_ts: {thread_ts!r}")

    return Permalink(channel_id=channel_id, ts=ts, thread_ts=thread_ts)


def parse_reference(token: str) -> Reference:
    """Classify ``token`` without touching the directory."""

    token = (token or "").strip()
    if not token:
        raise InvalidReferenceError("empty conversation reference")

    if token.startswith(("http://", "https://")):
        return _parse_permalink(token)
    if is_channel_id(token):
        return RawId(token)
    if _NAME_RE.match(token):
        if token.startswith("#"):
            return ChannelName(token)
        return UserHandle(token)
    raise InvalidReferenceError(
        f"unrecognized conversation reference {token!r}; "
        "expected a channel ID, #channel, @user or a message permalink"
    )


def resolve_reference(token: str | Reference, resolver: DirectoryResolver) -> ConversationTarget:
    """Resolve ``token`` to a conversation, consulting ``resolver`` for names."""

    ref = parse_reference(token) if isinstance(token, str) else token
    if isinstance(ref, Permalink):
        return ConversationTarget(ref.channel_id, ref.ts, ref.thread_ts)
    if isinstance(ref, RawId):
        return ConversationTarget(ref.channel_id)
    if isinstance(ref, ChannelName):
        return ConversationTarget(resolver.resolve_channel(ref.name))
    return ConversationTarget(resolver.resolve_channel(ref.handle))


def build_permalink(workspace_url: str, channel_id: str, ts: str, thread_ts: str | None = None) -> str:
    """Return the web link for message ``ts``, the inverse of permalink parsing."""

    base = workspace_url.strip().rstrip("/")
    if not base.startswith(("http://", "https://")):
        base = f"https://{base}"
    url = f"{base}/archives/{channel_id}/p{ts.replace('.', '')}"
    if thread_ts and thread_ts != ts:
        url += f"?thread_ts={thread_ts}&cid={channel_id}"
    return url


def validate_ts(ts: str) -> str:
    """Return ``ts`` if it looks like a message timestamp."""

    if not _TS_RE.match(ts or ""):
        raise InvalidReferenceError(f"invalid message timestamp: {ts!r}")
    return ts


__all__ = [
    "ChannelName",
    "ConversationTarget",
    "Permalink",
    "RawId",
    "Reference",
    "UserHandle",
    "build_permalink",
    "parse_reference",
    "resolve_reference",
    "validate_ts",
]
