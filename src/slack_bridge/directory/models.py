"""Dataclass models for directory records.

Record schema (output of :meth:`User.to_dict` / :meth:`Channel.to_dict`)::

    {"id": "U024BE7LH", "handle": "alice", "real_name": "Alice A.",
     "deleted": false, "is_bot": false}
    {"id": "C024BE91L", "name": "#general", "type": "public", "topic": "...",
     "purpose": "...", "member_count": 42, "is_ext_shared": false,
     "is_archived": false, "user_id": null, "last_activity": "1700000000.000100"}

Channel names carry their sigil so they match user-facing tokens verbatim:
``#name`` for public and private channels, ``@handle`` for direct messages
and ``@mpdm-...`` for group DMs.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


def _record(raw: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise TypeError(f"{kind} record is {type(raw).__name__}, not an object")
    return raw


def _nested(raw: Mapping[str, Any], key: str, field_name: str) -> Any:
    value = raw.get(key) or {}
    if not isinstance(value, Mapping):
        raise TypeError(f"'{key}' is {type(value).__name__}, not an object")
    return value.get(field_name)


class ChannelType(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    IM = "im"
    MPIM = "mpim"


# conversations.list ``types`` values mapped onto record types.
API_CHANNEL_TYPES: Dict[str, ChannelType] = {
    "public_channel": ChannelType.PUBLIC,
    "private_channel": ChannelType.PRIVATE,
    "im": ChannelType.IM,
    "mpim": ChannelType.MPIM,
}


@dataclass(frozen=True, slots=True)
class User:
    """Workspace member as of the last directory fetch."""

    id: str
    handle: str
    real_name: str = ""
    deleted: bool = False
    is_bot: bool = False

    @property
    def active(self) -> bool:
        return not self.deleted

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "User":
        raw = _record(raw, "member")
        return cls(
            id=str(raw["id"]),
            handle=str(raw.get("name") or ""),
            real_name=str(raw.get("real_name") or _nested(raw, "profile", "real_name") or ""),
            deleted=bool(raw.get("deleted", False)),
            is_bot=bool(raw.get("is_bot", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "handle": self.handle,
            "real_name": self.real_name,
            "deleted": self.deleted,
            "is_bot": self.is_bot,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            handle=str(data["handle"]),
            real_name=str(data.get("real_name", "")),
            deleted=bool(data.get("deleted", False)),
            is_bot=bool(data.get("is_bot", False)),
        )


@dataclass(frozen=True, slots=True)
class Channel:
    """Conversation the token can see, of any type."""

    id: str
    name: str
    type: ChannelType
    topic: str = ""
    purpose: str = ""
    member_count: int = 0
    is_ext_shared: bool = False
    is_archived: bool = False
    user_id: Optional[str] = None
    last_activity: Optional[str] = None

    @classmethod
    def from_api(
        cls,
        raw: Mapping[str, Any],
        channel_type: ChannelType,
        handles: Mapping[str, str] | None = None,
    ) -> "Channel":
        """Build a record from a ``conversations.list`` entry.

        ``handles`` maps user IDs to handles so direct messages can be named
        after their counterpart.
        """

        raw = _record(raw, "channel")
        user_id = raw.get("user")
        if channel_type is ChannelType.IM:
            handle = (handles or {}).get(user_id or "") or user_id or raw["id"]
            name = f"@{handle}"
        elif channel_type is ChannelType.MPIM:
            name = f"@{raw.get('name') or raw['id']}"
        else:
            name = f"#{raw.get('name') or raw['id']}"

        latest = raw.get("latest")
        last_activity = latest.get("ts") if isinstance(latest, Mapping) else None
        return cls(
            id=str(raw["id"]),
            name=name,
            type=channel_type,
            topic=str(_nested(raw, "topic", "value") or ""),
            purpose=str(_nested(raw, "purpose", "value") or ""),
            member_count=int(raw.get("num_members") or 0),
            is_ext_shared=bool(raw.get("is_ext_shared", False)),
            is_archived=bool(raw.get("is_archived", False)),
            user_id=str(user_id) if user_id else None,
            last_activity=last_activity,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "topic": self.topic,
            "purpose": self.purpose,
            "member_count": self.member_count,
            "is_ext_shared": self.is_ext_shared,
            "is_archived": self.is_archived,
            "user_id": self.user_id,
            "last_activity": self.last_activity,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Channel":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=ChannelType(data["type"]),
            topic=str(data.get("topic", "")),
            purpose=str(data.get("purpose", "")),
            member_count=int(data.get("member_count", 0)),
            is_ext_shared=bool(data.get("is_ext_shared", False)),
            is_archived=bool(data.get("is_archived", False)),
            user_id=data.get("user_id"),
            last_activity=data.get("last_activity"),
        )


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Every user and channel as of ``fetched_at`` (epoch seconds)."""

    users: Tuple[User, ...]
    channels: Tuple[Channel, ...]
    fetched_at: float = field(default_factory=time.time)

    def age(self, now: float | None = None) -> float:
        return max(0.0, (time.time() if now is None else now) - self.fetched_at)


__all__ = ["API_CHANNEL_TYPES", "Channel", "ChannelType", "Snapshot", "User"]
