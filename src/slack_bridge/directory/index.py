"""
Lookup tables derived from a :class:`~slack_bridge.directory.models.Snapshot`.

:class:`ResolutionIndex` is built in one linear pass and never mutated
afterwards. Name keys map to *tuples* of IDs so duplicates survive indexing
and can be reported as ambiguous. :class:`DirectoryView` pins an index to
the snapshot it was built from; the directory service swaps whole views,
never the two halves separately.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from .models import Channel, ChannelType, Snapshot, User


def _freeze(multi: Dict[str, List[str]]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in multi.items()})


@dataclass(frozen=True)
class ResolutionIndex:
    users_by_id: Mapping[str, User]
    user_ids_by_handle: Mapping[str, Tuple[str, ...]]
    channels_by_id: Mapping[str, Channel]
    channel_ids_by_name: Mapping[str, Tuple[str, ...]]
    im_by_user_id: Mapping[str, str]

    @classmethod
    def build(cls, snapshot: Snapshot) -> "ResolutionIndex":
        users_by_id: Dict[str, User] = {}
        by_handle: Dict[str, List[str]] = {}
        for user in snapshot.users:
            users_by_id[user.id] = user
            if user.handle:
                by_handle.setdefault(user.handle, []).append(user.id)

        channels_by_id: Dict[str, Channel] = {}
        by_name: Dict[str, List[str]] = {}
        im_by_user: Dict[str, str] = {}
        for channel in snapshot.channels:
            channels_by_id[channel.id] = channel
            by_name.setdefault(channel.name, []).append(channel.id)
            if channel.user_id and channel.type is ChannelType.IM:
                im_by_user[channel.user_id] = channel.id

        return cls(
            users_by_id=MappingProxyType(users_by_id),
            user_ids_by_handle=_freeze(by_handle),
            channels_by_id=MappingProxyType(channels_by_id),
            channel_ids_by_name=_freeze(by_name),
            im_by_user_id=MappingProxyType(im_by_user),
        )


@dataclass(frozen=True)
class DirectoryView:
    """A snapshot together with the index built from it."""

    snapshot: Snapshot
    index: ResolutionIndex

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "DirectoryView":
        return cls(snapshot=snapshot, index=ResolutionIndex.build(snapshot))


__all__ = ["DirectoryView", "ResolutionIndex"]
