"""
Directory lifecycle: loading, refreshing and publishing snapshots.

:class:`DirectoryService` owns the current :class:`DirectoryView`. Readers
grab the reference and work against that immutable value; refreshes build a
complete new view off to the side and replace the reference in one
assignment. The only lock guards the single in-flight refresh, never the
view itself.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Protocol

from slack_bridge.errors import (
    CacheCorruptError,
    CacheWriteError,
    DirectoryUnavailableError,
    MalformedResponseError,
    RemoteCallError,
)

from .index import DirectoryView
from .models import API_CHANNEL_TYPES, Channel, Snapshot, User
from .resolver import DirectoryResolver
from .store import DirectoryCacheStore

logger = logging.getLogger(__name__)

# Upper bound on pages per listing; guards against a server that never stops paginating.
MAX_PAGES = 10_000


class DirectoryClient(Protocol):
    async def users_page(self, cursor: str = "", limit: int = 200) -> tuple[list[dict], str]: ...

    async def channels_page(
        self, channel_type: str, cursor: str = "", limit: int = 200
    ) -> tuple[list[dict], str]: ...


class DirectoryService:
    """Single owner of the directory snapshot for one process."""

    def __init__(
        self,
        client: DirectoryClient,
        store: DirectoryCacheStore,
        *,
        channel_types: Iterable[str] = ("public_channel", "private_channel", "mpim", "im"),
        max_age: float = 0,
        page_size: int = 200,
    ) -> None:
        self._client = client
        self._store = store
        self._channel_types = list(channel_types)
        unknown = [t for t in self._channel_types if t not in API_CHANNEL_TYPES]
        if unknown:
            raise ValueError(f"Unknown channel types: {', '.join(unknown)}")
        self._max_age = max_age
        self._page_size = page_size

        self._view: DirectoryView | None = None
        self._source: str | None = None
        self._last_error: str | None = None

        self._inflight: asyncio.Future[DirectoryView] | None = None
        self._refresh_task: asyncio.Task[None] | None = None
        self._inflight_lock = asyncio.Lock()
        self._save_tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------ #
    # READ helpers
    # ------------------------------------------------------------------ #

    @property
    def view(self) -> DirectoryView | None:
        return self._view

    def resolver(self) -> DirectoryResolver:
        """Return a resolver bound to the current view."""

        view = self._view
        if view is None:
            raise DirectoryUnavailableError(self._unavailable_reason())
        return DirectoryResolver(view)

    def is_stale(self, now: float | None = None) -> bool:
        view = self._view
        if view is None:
            return True
        if self._max_age <= 0:
            return False
        return view.snapshot.age(now) > self._max_age

    def status(self) -> Dict[str, Any]:
        view = self._view
        if view is None:
            return {
                "ready": False,
                "source": None,
                "fetched_at": None,
                "age_seconds": None,
                "stale": True,
                "users": 0,
                "channels": 0,
                "refreshing": self._inflight is not None,
                "last_error": self._last_error,
            }
        snapshot = view.snapshot
        return {
            "ready": True,
            "source": self._source,
            "fetched_at": snapshot.fetched_at,
            "age_seconds": round(snapshot.age(), 3),
            "stale": self.is_stale(),
            "users": len(snapshot.users),
            "channels": len(snapshot.channels),
            "refreshing": self._inflight is not None,
            "last_error": self._last_error,
        }

    # ------------------------------------------------------------------ #
    # LIFECYCLE
    # ------------------------------------------------------------------ #

    async def start(self) -> DirectoryView:
        """Adopt the on-disk cache if usable, otherwise fetch remotely."""

        if self._view is None:
            snapshot = await self._load_cached()
            if snapshot is not None:
                # A stale copy is still adopted so it can serve if the refresh fails.
                self._publish(DirectoryView.from_snapshot(snapshot), "disk")
                if self.is_stale():
                    logger.info(
                        "Cached directory is %.0fs old (max %.0fs); refreshing",
                        snapshot.age(),
                        self._max_age,
                    )
        return await self.ensure_ready()

    async def ensure_ready(self) -> DirectoryView:
        """Return the current view, refreshing first when absent or stale."""

        view = self._view
        if view is not None and not self.is_stale():
            return view
        try:
            return await self.refresh()
        except Exception:
            # The refresh failed but an older view is still better than nothing.
            fallback = self._view
            if fallback is None:
                raise
            logger.warning("Serving stale directory after failed refresh")
            return fallback

    async def refresh(self, force: bool = False) -> DirectoryView:
        """Fetch a new snapshot unless the current one is fresh.

        Concurrent callers share one fetch and receive the same view or the
        same exception. Cancelling a caller only stops that caller waiting.
        """

        if not force and self._view is not None and not self.is_stale():
            return self._view

        async with self._inflight_lock:
            future = self._inflight
            if future is None:
                if not force and self._view is not None and not self.is_stale():
                    return self._view
                future = asyncio.get_running_loop().create_future()
                self._inflight = future
                self._refresh_task = asyncio.create_task(self._run_refresh(future))

        return await asyncio.shield(future)

    async def close(self) -> None:
        """Stop any refresh in flight and wait for pending cache writes."""

        task = self._refresh_task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if self._save_tasks:
            await asyncio.gather(*list(self._save_tasks), return_exceptions=True)

    # ------------------------------------------------------------------ #
    # INTERNALS
    # ------------------------------------------------------------------ #

    async def _run_refresh(self, future: asyncio.Future[DirectoryView]) -> None:
        try:
            snapshot = await self._fetch_snapshot()
        except asyncio.CancelledError:
            if self._view is not None:
                # Waiters keep the view that is already being served.
                self._finish(future, view=self._view)
            else:
                self._finish(future, error=DirectoryUnavailableError("directory refresh cancelled"))
            raise
        except RemoteCallError as exc:
            self._last_error = str(exc)
            logger.error("Directory refresh failed: %s", exc)
            if self._view is None:
                err: BaseException = DirectoryUnavailableError(
                    f"directory unavailable: {exc}"
                )
                err.__cause__ = exc
            else:
                err = exc
            self._finish(future, error=err)
            return
        except Exception as exc:
            self._last_error = str(exc)
            logger.exception("Unexpected error refreshing directory")
            self._finish(future, error=exc)
            return

        view = DirectoryView.from_snapshot(snapshot)
        self._last_error = None
        self._publish(view, "remote")
        self._schedule_save(snapshot)
        self._finish(future, view=view)

    def _finish(
        self,
        future: asyncio.Future[DirectoryView],
        *,
        view: DirectoryView | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._inflight = None
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
            # Mark retrieved so an unobserved failure does not warn at shutdown.
            future.exception()
        else:
            future.set_result(view)

    def _publish(self, view: DirectoryView, source: str) -> None:
        self._view = view
        self._source = source
        logger.info(
            "Directory view adopted from %s: %d users, %d channels (fetched_at=%.0f)",
            source,
            len(view.snapshot.users),
            len(view.snapshot.channels),
            view.snapshot.fetched_at,
        )

    async def _fetch_snapshot(self) -> Snapshot:
        started = time.time()
        raw_users = await self._collect(lambda cursor: self._client.users_page(cursor, self._page_size))
        try:
            users = tuple(User.from_api(raw) for raw in raw_users)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise MalformedResponseError("users.list", f"bad member record: {exc}") from exc
        handles = {u.id: u.handle for u in users}

        channels: List[Channel] = []
        seen: set[str] = set()
        for api_type in self._channel_types:
            channel_type = API_CHANNEL_TYPES[api_type]
            raw_channels = await self._collect(
                lambda cursor, t=api_type: self._client.channels_page(t, cursor, self._page_size)
            )
            try:
                for raw in raw_channels:
                    channel = Channel.from_api(raw, channel_type, handles)
                    if channel.id not in seen:
                        seen.add(channel.id)
                        channels.append(channel)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise MalformedResponseError("conversations.list", f"bad channel record: {exc}") from exc

        logger.info(
            "Fetched directory: %d users, %d channels in %.1fs",
            len(users),
            len(channels),
            time.time() - started,
        )
        return Snapshot(users=users, channels=tuple(channels), fetched_at=time.time())

    @staticmethod
    async def _collect(fetch_page) -> List[dict]:
        items: List[dict] = []
        cursor = ""
        for _ in range(MAX_PAGES):
            page, cursor = await fetch_page(cursor)
            items.extend(page)
            if not cursor:
                return items
        raise MalformedResponseError("pagination", f"exceeded {MAX_PAGES} pages")

    async def _load_cached(self) -> Snapshot | None:
        try:
            snapshot = await asyncio.to_thread(self._store.load)
        except CacheCorruptError as exc:
            logger.warning("Ignoring unusable directory cache: %s", exc)
            return None
        if snapshot is None:
            logger.info("No directory cache on disk")
        return snapshot

    def _schedule_save(self, snapshot: Snapshot) -> None:
        task = asyncio.create_task(self._save(snapshot))
        self._save_tasks.add(task)
        task.add_done_callback(self._save_tasks.discard)

    async def _save(self, snapshot: Snapshot) -> None:
        try:
            await asyncio.to_thread(self._store.save, snapshot)
        except CacheWriteError as exc:
            logger.error("Directory cache not persisted: %s", exc)

    def _unavailable_reason(self) -> str:
        if self._last_error:
            return f"directory unavailable: {self._last_error}"
        return "directory not loaded yet"


__all__ = ["DirectoryClient", "DirectoryService"]
