"""
Workspace directory package.

Modules
=======

``models``
    Frozen :class:`User`, :class:`Channel` and :class:`Snapshot` records plus
    their API and cache-file conversions.
``store``
    :class:`DirectoryCacheStore`, the versioned on-disk snapshot.
``index``
    :class:`ResolutionIndex` lookup tables and the :class:`DirectoryView`
    pairing them with their snapshot.
``resolver``
    :class:`DirectoryResolver` turning ``#channel``/``@user``/ID tokens into
    IDs and back.
``service``
    :class:`DirectoryService`, which loads, refreshes and publishes views
    with single-flight refreshes.
"""

from .index import DirectoryView, ResolutionIndex
from .models import Channel, ChannelType, Snapshot, User
from .resolver import DirectoryResolver
from .service import DirectoryService
from .store import DirectoryCacheStore

__all__ = [
    "Channel",
    "ChannelType",
    "DirectoryCacheStore",
    "DirectoryResolver",
    "DirectoryService",
    "DirectoryView",
    "ResolutionIndex",
    "Snapshot",
    "User",
]
