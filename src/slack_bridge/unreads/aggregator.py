"""
Unread conversation aggregation.

One ``client.counts`` request reports unread state for every conversation the
token belongs to. :class:`UnreadAggregator` classifies those entries through
the directory, filters and ranks them, keeps the top ``max_channels`` and,
when asked, pulls the unread messages for just those survivors with bounded
concurrency. Ranking happens before any history is fetched, so the order of
the report never depends on which fetch finished first.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Protocol

from slack_bridge.directory.models import Channel, ChannelType
from slack_bridge.directory.resolver import DirectoryResolver
from slack_bridge.errors import PartialFetchFailure, RemoteCallError, UnreadCountsError

logger = logging.getLogger(__name__)


class Category(str, Enum):
    DM = "dm"
    GROUP_DM = "group_dm"
    PARTNER = "partner"
    INTERNAL = "internal"


CATEGORY_RANK: Dict[Category, int] = {
    Category.DM: 0,
    Category.GROUP_DM: 1,
    Category.PARTNER: 2,
    Category.INTERNAL: 3,
}

CHANNEL_TYPE_FILTERS = ("all",) + tuple(c.value for c in Category)

# ``client.counts`` section a conversation was reported in, used when the
# directory snapshot does not know the conversation yet.
_SECTION_CATEGORY = {
    "ims": Category.DM,
    "mpims": Category.GROUP_DM,
    "channels": Category.INTERNAL,
}


class UnreadClient(Protocol):
    async def unread_counts(self) -> Dict[str, List[Dict[str, Any]]]: ...

    async def history(
        self,
        channel_id: str,
        *,
        limit: int = 100,
        cursor: str = "",
        oldest: str | None = None,
        latest: str | None = None,
    ) -> tuple[list[dict], str]: ...


@dataclass(frozen=True, slots=True)
class UnreadQuery:
    include_messages: bool = False
    channel_types: str = "all"
    max_channels: int = 50
    max_messages_per_channel: int = 10
    mentions_only: bool = False

    def __post_init__(self) -> None:
        if self.channel_types not in CHANNEL_TYPE_FILTERS:
            raise ValueError(
                f"channel_types must be one of {', '.join(CHANNEL_TYPE_FILTERS)}; got {self.channel_types!r}"
            )
        if self.max_channels < 1:
            raise ValueError("max_channels must be >= 1")
        if self.max_messages_per_channel < 1:
            raise ValueError("max_messages_per_channel must be >= 1")


@dataclass(slots=True)
class UnreadChannel:
    """Unread state of one conversation."""

    channel_id: str
    name: str
    category: Category
    unread_count: int
    mention_count: int = 0
    last_read: str | None = None
    latest_ts: str | None = None
    messages: List[Dict[str, Any]] | None = None
    error: str | None = None

    @property
    def has_mention(self) -> bool:
        return self.mention_count > 0

    def sort_key(self) -> tuple:
        try:
            latest = float(self.latest_ts or 0)
        except (TypeError, ValueError):
            latest = 0.0
        return (CATEGORY_RANK[self.category], -self.unread_count, -latest, self.channel_id)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "channel_id": self.channel_id,
            "name": self.name,
            "category": self.category.value,
            "unread_count": self.unread_count,
            "mention_count": self.mention_count,
            "has_mention": self.has_mention,
            "last_read": self.last_read,
            "latest_ts": self.latest_ts,
        }
        if self.messages is not None:
            out["messages"] = self.messages
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(slots=True)
class UnreadReport:
    channels: List[UnreadChannel] = field(default_factory=list)
    total_unread: int = 0
    total_channels: int = 0
    directory_age_seconds: float | None = None

    @property
    def partial_failures(self) -> int:
        return sum(1 for c in self.channels if c.error is not None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channels": [c.to_dict() for c in self.channels],
            "total_unread": self.total_unread,
            "total_channels": self.total_channels,
            "returned_channels": len(self.channels),
            "partial_failures": self.partial_failures,
            "directory_age_seconds": self.directory_age_seconds,
        }


def _timestamp(value: Any) -> str | None:
    """Return ``value`` as a Slack timestamp string, or ``None`` if unusable."""

    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return str(value) or None


def classify(channel: Channel | None, section: str) -> Category:
    """Return the unread category for ``channel`` reported under ``section``."""

    if channel is None:
        return _SECTION_CATEGORY.get(section, Category.INTERNAL)
    if channel.type is ChannelType.IM:
        return Category.DM
    if channel.type is ChannelType.MPIM:
        return Category.GROUP_DM
    if channel.is_ext_shared:
        return Category.PARTNER
    return Category.INTERNAL


def unread_count(entry: Mapping[str, Any]) -> int:
    """Best available unread figure for a ``client.counts`` entry.

    DMs report ``dm_count``; channels may only report ``has_unreads``, which
    counts as one.
    """

    for key in ("unread_count_display", "unread_count", "dm_count"):
        value = entry.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return max(value, 0)
    return 1 if entry.get("has_unreads") else 0


def rank(channels: Iterable[UnreadChannel]) -> List[UnreadChannel]:
    return sorted(channels, key=UnreadChannel.sort_key)


class UnreadAggregator:
    """Build prioritized unread views from directory data and read markers."""

    def __init__(self, client: UnreadClient, *, history_concurrency: int = 5) -> None:
        self._client = client
        self._concurrency = max(1, history_concurrency)

    async def aggregate(self, resolver: DirectoryResolver, query: UnreadQuery) -> UnreadReport:
        try:
            counts = await self._client.unread_counts()
        except RemoteCallError as exc:
            logger.error("Unread counts unavailable: %s", exc)
            raise UnreadCountsError(f"could not load unread counts: {exc}") from exc

        candidates = self._collect(resolver, counts, query)
        ranked = rank(candidates)
        selected = ranked[: query.max_channels]

        report = UnreadReport(
            channels=selected,
            total_unread=sum(c.unread_count for c in ranked),
            total_channels=len(ranked),
            directory_age_seconds=round(resolver.view.snapshot.age(), 3),
        )

        if query.include_messages and selected:
            await self._attach_messages(resolver, selected, query.max_messages_per_channel)

        logger.info(
            "Unreads: %d qualifying conversation(s), returning %d (%d partial failure(s))",
            report.total_channels,
            len(selected),
            report.partial_failures,
        )
        return report

    # ------------------------------------------------------------------ #

    @staticmethod
    def _collect(
        resolver: DirectoryResolver,
        counts: Mapping[str, List[Dict[str, Any]]],
        query: UnreadQuery,
    ) -> List[UnreadChannel]:
        found: Dict[str, UnreadChannel] = {}
        for section in ("ims", "mpims", "channels"):
            for entry in counts.get(section, []):
                channel_id = str(entry["id"])
                count = unread_count(entry)
                if count <= 0 or channel_id in found:
                    continue

                channel = resolver.channel(channel_id)
                category = classify(channel, section)
                if query.channel_types != "all" and category.value != query.channel_types:
                    continue

                mentions = entry.get("mention_count")
                mention_count = mentions if isinstance(mentions, int) and mentions > 0 else 0
                if query.mentions_only and not mention_count:
                    continue

                found[channel_id] = UnreadChannel(
                    channel_id=channel_id,
                    name=channel.name if channel else channel_id,
                    category=category,
                    unread_count=count,
                    mention_count=mention_count,
                    last_read=_timestamp(entry.get("last_read")),
                    latest_ts=_timestamp(entry.get("latest")) or (channel.last_activity if channel else None),
                )
        return list(found.values())

    async def _attach_messages(
        self,
        resolver: DirectoryResolver,
        channels: List[UnreadChannel],
        limit: int,
    ) -> None:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _fetch_one(item: UnreadChannel) -> None:
            async with semaphore:
                try:
                    messages, _ = await self._client.history(
                        item.channel_id, limit=limit, oldest=item.last_read
                    )
                except RemoteCallError as exc:
                    failure = PartialFetchFailure(item.channel_id, str(exc))
                    logger.warning("%s", failure)
                    item.error = str(failure)
                    item.messages = []
                    return
            item.messages = [simplify_message(m, resolver) for m in messages[:limit]]

        await asyncio.gather(*(_fetch_one(c) for c in channels))


def simplify_message(message: Mapping[str, Any], resolver: DirectoryResolver) -> Dict[str, Any]:
    """Reduce a raw history message to the fields tool callers need."""

    user_id = message.get("user") or message.get("bot_id")
    out: Dict[str, Any] = {
        "ts": message.get("ts"),
        "user": user_id,
        "user_handle": resolver.user_handle(user_id) if user_id else None,
        "text": message.get("text", ""),
    }
    if message.get("thread_ts"):
        out["thread_ts"] = message["thread_ts"]
    if message.get("reply_count"):
        out["reply_count"] = message["reply_count"]
    return out


__all__ = [
    "CATEGORY_RANK",
    "CHANNEL_TYPE_FILTERS",
    "Category",
    "UnreadAggregator",
    "UnreadChannel",
    "UnreadQuery",
    "UnreadReport",
    "classify",
    "rank",
    "simplify_message",
    "unread_count",
]
