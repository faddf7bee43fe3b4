"""
Name <-> ID resolution over a single :class:`DirectoryView`.

Token grammar understood by :class:`DirectoryResolver`:

``C024BE91L`` / ``U024BE7LH``
    Bare IDs are returned unchanged once their shape checks out. They are not
    required to exist in the snapshot, so freshly created conversations stay
    addressable before the next refresh.
``#general``
    Exact channel-name match.
``@alice``
    User-handle lookup first. For channels that means the IM with that user;
    failing that, the token is matched against channel names, which is how
    group-DM aliases (``@mpdm-alice--bob-1``) resolve.

Names shared by several records raise :class:`AmbiguousError` instead of
picking one.
"""

from __future__ import annotations

import re
from typing import Tuple

from slack_bridge.errors import AmbiguousError, InvalidReferenceError, NotFoundError

from .index import DirectoryView
from .models import Channel, User

CHANNEL_ID_RE = re.compile(r"^[CDG][A-Z0-9]{6,}$")
USER_ID_RE = re.compile(r"^[UWB][A-Z0-9]{6,}$")


def is_channel_id(token: str) -> bool:
    return bool(CHANNEL_ID_RE.match(token))


def is_user_id(token: str) -> bool:
    return bool(USER_ID_RE.match(token))


def _single(kind: str, token: str, ids: Tuple[str, ...]) -> str:
    if len(ids) > 1:
        raise AmbiguousError(kind, token, ids)
    return ids[0]


class DirectoryResolver:
    """Resolve user-facing tokens against one directory view."""

    def __init__(self, view: DirectoryView) -> None:
        self._view = view
        self._index = view.index

    @property
    def view(self) -> DirectoryView:
        return self._view

    # ------------------------------------------------------------------ #
    # Forward lookups
    # ------------------------------------------------------------------ #

    def resolve_channel(self, token: str) -> str:
        token = (token or "").strip()
        if not token:
            raise InvalidReferenceError("empty channel reference")
        if is_channel_id(token):
            return token

        if token.startswith("#"):
            ids = self._index.channel_ids_by_name.get(token)
            if not ids:
                raise NotFoundError("channel", token)
            return _single("channel", token, ids)

        if token.startswith("@"):
            user_ids = self._index.user_ids_by_handle.get(token[1:], ())
            if len(user_ids) > 1:
                raise AmbiguousError("user", token, user_ids)
            if user_ids:
                im_id = self._index.im_by_user_id.get(user_ids[0])
                if im_id:
                    return im_id
            ids = self._index.channel_ids_by_name.get(token)
            if ids:
                return _single("channel", token, ids)
            raise NotFoundError("channel", token)

        raise InvalidReferenceError(
            f"channel reference {token!r} must be an ID, #channel or @user"
        )

    def resolve_user(self, token: str) -> str:
        token = (token or "").strip()
        if not token:
            raise InvalidReferenceError("empty user reference")
        if is_user_id(token):
            return token

        handle = token[1:] if token.startswith("@") else token
        if not handle:
            raise InvalidReferenceError(f"user reference {token!r} has no handle")

        ids = self._index.user_ids_by_handle.get(handle)
        if ids:
            return _single("user", token, ids)

        # DM channels are named after their counterpart; fall back to that alias.
        channel_ids = self._index.channel_ids_by_name.get(f"@{handle}", ())
        partners = {
            self._index.channels_by_id[cid].user_id
            for cid in channel_ids
            if self._index.channels_by_id[cid].user_id
        }
        if len(partners) > 1:
            raise AmbiguousError("user", token, tuple(partners))
        if partners:
            return partners.pop()
        raise NotFoundError("user", token)

    # ------------------------------------------------------------------ #
    # Reverse lookups
    # ------------------------------------------------------------------ #

    def channel(self, channel_id: str) -> Channel | None:
        return self._index.channels_by_id.get(channel_id)

    def user(self, user_id: str) -> User | None:
        return self._index.users_by_id.get(user_id)

    def channel_name(self, channel_id: str) -> str | None:
        channel = self.channel(channel_id)
        return channel.name if channel else None

    def user_handle(self, user_id: str) -> str | None:
        user = self.user(user_id)
        return user.handle if user else None


__all__ = [
    "CHANNEL_ID_RE",
    "USER_ID_RE",
    "DirectoryResolver",
    "is_channel_id",
    "is_user_id",
]
