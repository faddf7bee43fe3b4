"""
Persistent directory cache.

A snapshot is stored as two gzipped JSON documents, one per entity class,
sharing the same envelope::

    {"version": 1, "fetched_at": 1700000000.0, "users": [User-as-dict, ...]}
    {"version": 1, "fetched_at": 1700000000.0, "channels": [Channel-as-dict, ...]}

:meth:`DirectoryCacheStore.load` returns ``None`` when either file is absent
and raises :class:`~slack_bridge.errors.CacheCorruptError` when the files
exist but cannot be trusted (bad gzip/JSON, version mismatch, malformed
records, or halves written by different fetches). :meth:`save` writes each
file to a temporary sibling and renames it into place.
"""

from __future__ import annotations

import gzip
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict

from slack_bridge.errors import CacheCorruptError, CacheWriteError

from .models import Channel, Snapshot, User

logger = logging.getLogger(__name__)

CACHE_VERSION = 1

USERS_FILE = "users.json.gz"
CHANNELS_FILE = "channels.json.gz"


class DirectoryCacheStore:
    """Reads and writes directory snapshots under ``cache_dir``."""

    def __init__(self, cache_dir: str | Path) -> None:
        self._dir = Path(cache_dir)
        self._write_lock = threading.Lock()

    @property
    def users_path(self) -> Path:
        return self._dir / USERS_FILE

    @property
    def channels_path(self) -> Path:
        return self._dir / CHANNELS_FILE

    def exists(self) -> bool:
        return self.users_path.exists() and self.channels_path.exists()

    def load(self) -> Snapshot | None:
        if not self.exists():
            return None

        users_doc = self._read(self.users_path)
        channels_doc = self._read(self.channels_path)

        users_at = users_doc.get("fetched_at")
        channels_at = channels_doc.get("fetched_at")
        if users_at != channels_at:
            raise CacheCorruptError(
                f"cache halves come from different fetches ({users_at} != {channels_at})"
            )

        try:
            users = tuple(User.from_dict(d) for d in users_doc["users"])
            channels = tuple(Channel.from_dict(d) for d in channels_doc["channels"])
            fetched_at = float(users_at)
        except (KeyError, TypeError, ValueError) as exc:
            raise CacheCorruptError(f"malformed cache record: {exc}") from exc

        return Snapshot(users=users, channels=channels, fetched_at=fetched_at)

    def save(self, snapshot: Snapshot) -> None:
        users_doc = {
            "version": CACHE_VERSION,
            "fetched_at": snapshot.fetched_at,
            "users": [u.to_dict() for u in snapshot.users],
        }
        channels_doc = {
            "version": CACHE_VERSION,
            "fetched_at": snapshot.fetched_at,
            "channels": [c.to_dict() for c in snapshot.channels],
        }
        with self._write_lock:
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                self._write(self.users_path, users_doc)
                self._write(self.channels_path, channels_doc)
            except OSError as exc:
                raise CacheWriteError(f"failed to write cache to {self._dir}: {exc}") from exc
        logger.info(
            "Saved directory cache (%d users, %d channels) to %s",
            len(snapshot.users),
            len(snapshot.channels),
            self._dir,
        )

    def clear(self) -> None:
        with self._write_lock:
            for p in (self.users_path, self.channels_path):
                p.unlink(missing_ok=True)

    # ------------------------------------------------------------------ #

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        try:
            with gzip.open(path, "rt", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, EOFError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CacheCorruptError(f"cannot decode {path.name}: {exc}") from exc

        if not isinstance(doc, dict):
            raise CacheCorruptError(f"{path.name} is not a JSON object")
        version = doc.get("version")
        if version != CACHE_VERSION:
            raise CacheCorruptError(
                f"{path.name} has version {version!r}, expected {CACHE_VERSION}"
            )
        return doc

    @staticmethod
    def _write(path: Path, doc: Dict[str, Any]) -> None:
        tmp = path.with_suffix(".tmp")
        with gzip.open(tmp, "wt", encoding="utf-8") as f:
            json.dump(doc, f)
        # Atomic rename keeps partially written files from being observed by other processes.
        os.replace(tmp, path)


__all__ = ["CACHE_VERSION", "DirectoryCacheStore"]
