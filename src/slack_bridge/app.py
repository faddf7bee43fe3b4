"""Process-wide wiring of the bridge services."""

from __future__ import annotations

import logging

from slack_bridge.canvases import CanvasService
from slack_bridge.clients.slack import SlackClient
from slack_bridge.config import cache, core, unreads
from slack_bridge.directory import DirectoryCacheStore, DirectoryResolver, DirectoryService
from slack_bridge.unreads import UnreadAggregator

logger = logging.getLogger(__name__)


class Bridge:
    """Owns the client, directory and aggregators for one process.

    Construct once, ``await start()`` before serving tools and ``await
    close()`` on shutdown (or use it as an async context manager).
    """

    def __init__(
        self,
        client: SlackClient,
        store: DirectoryCacheStore,
        *,
        channel_types: list[str] | None = None,
        max_age: float = 0,
        page_size: int = 200,
        history_concurrency: int = 5,
        workspace_url: str = "",
    ) -> None:
        self.client = client
        self.workspace_url = workspace_url
        self.directory = DirectoryService(
            client,
            store,
            channel_types=channel_types or ["public_channel", "private_channel", "mpim", "im"],
            max_age=max_age,
            page_size=page_size,
        )
        self.unreads = UnreadAggregator(client, history_concurrency=history_concurrency)
        self.canvases = CanvasService(client)

    @classmethod
    def from_config(cls) -> "Bridge":
        client = SlackClient(
            core.SLACK_TOKEN or "",
            base_url=core.API_BASE_URL,
            timeout=core.REQUEST_TIMEOUT,
            retry_attempts=core.RETRY_ATTEMPTS,
            retry_base_delay=core.RETRY_BASE_DELAY,
            retry_max_delay=core.RETRY_MAX_DELAY,
        )
        return cls(
            client,
            DirectoryCacheStore(cache.CACHE_DIR),
            channel_types=cache.CHANNEL_TYPES,
            max_age=cache.MAX_AGE,
            page_size=cache.PAGE_SIZE,
            history_concurrency=unreads.HISTORY_CONCURRENCY,
            workspace_url=core.WORKSPACE_URL,
        )

    async def start(self) -> None:
        await self.directory.start()
        logger.info("Bridge ready: %s", self.directory.status())

    async def close(self) -> None:
        await self.directory.close()

    async def resolver(self) -> DirectoryResolver:
        """Return a resolver over a ready directory view."""

        view = await self.directory.ensure_ready()
        return DirectoryResolver(view)

    async def __aenter__(self) -> "Bridge":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


__all__ = ["Bridge"]
