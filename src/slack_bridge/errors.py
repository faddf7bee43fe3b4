"""
Exception hierarchy shared across the bridge.

Everything raised on purpose derives from :class:`BridgeError` so the tool
layer can turn it into a structured error result. Cache problems
(:class:`CacheCorruptError`, :class:`CacheWriteError`) are handled inside the
directory service and never reach tool callers.
"""

from __future__ import annotations

from typing import Sequence


class BridgeError(Exception):
    """Base class for every expected failure."""


class NotFoundError(BridgeError):
    """A reference could not be resolved against the current directory."""

    def __init__(self, kind: str, token: str) -> None:
        super().__init__(f"{kind} not found: {token}")
        self.kind = kind
        self.token = token


class AmbiguousError(BridgeError):
    """A name matched more than one record."""

    def __init__(self, kind: str, token: str, candidates: Sequence[str]) -> None:
        ids = ", ".join(sorted(candidates))
        super().__init__(f"{kind} reference {token!r} is ambiguous; matches: {ids}")
        self.kind = kind
        self.token = token
        self.candidates = tuple(sorted(candidates))


class DirectoryUnavailableError(BridgeError):
    """No directory snapshot could be obtained."""


class InvalidReferenceError(BridgeError, ValueError):
    """A conversation or user reference has an unrecognized shape."""


class ToolInputError(BridgeError, ValueError):
    """Tool arguments failed validation before any remote call."""


class RemoteCallError(BridgeError):
    """A remote API call failed after retries were exhausted."""

    def __init__(self, method: str, message: str) -> None:
        super().__init__(f"{method} failed: {message}")
        self.method = method


class MalformedResponseError(RemoteCallError):
    """A remote response did not have the expected structure."""


class UnreadCountsError(BridgeError):
    """The unread-counts call failed; no unread view can be produced."""


class PartialFetchFailure(BridgeError):
    """History for one channel could not be fetched."""

    def __init__(self, channel_id: str, reason: str) -> None:
        super().__init__(f"history fetch failed for {channel_id}: {reason}")
        self.channel_id = channel_id
        self.reason = reason


class CacheCorruptError(BridgeError):
    """The on-disk cache exists but cannot be used."""


class CacheWriteError(BridgeError):
    """Persisting the cache failed."""


__all__ = [
    "AmbiguousError",
    "BridgeError",
    "CacheCorruptError",
    "CacheWriteError",
    "DirectoryUnavailableError",
    "InvalidReferenceError",
    "MalformedResponseError",
    "NotFoundError",
    "PartialFetchFailure",
    "RemoteCallError",
    "ToolInputError",
    "UnreadCountsError",
]
