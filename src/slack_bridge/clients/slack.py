"""Thin async wrapper around the Slack Web API.

Every method performs exactly one logical request (plus retries), validates
the shape of what came back, and returns plain Python structures. Pagination
is left to callers: list methods return ``(items, next_cursor)`` where an
empty ``next_cursor`` means the listing is complete.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Tuple

import aiohttp
from slack_sdk.web.async_client import AsyncWebClient

from slack_bridge.errors import MalformedResponseError, RemoteCallError

from .retry import call_with_retry

logger = logging.getLogger(__name__)

Page = Tuple[List[Dict[str, Any]], str]


def _as_dict(response: Any) -> Dict[str, Any]:
    data = getattr(response, "data", response)
    if not isinstance(data, Mapping):
        raise MalformedResponseError("response", f"expected an object, got {type(data).__name__}")
    return dict(data)


def _page(method: str, response: Any, key: str) -> Page:
    data = _as_dict(response)
    items = data.get(key)
    if not isinstance(items, list):
        raise MalformedResponseError(method, f"missing '{key}' list")
    meta = data.get("response_metadata") or {}
    cursor = meta.get("next_cursor") if isinstance(meta, Mapping) else None
    return items, str(cursor or "")


class SlackClient:
    """Remote directory, history and canvas calls used by the bridge."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str | None = None,
        timeout: int = 30,
        retry_attempts: int = 4,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 30.0,
        web_client: AsyncWebClient | None = None,
    ) -> None:
        self._token = token
        self._timeout = timeout
        kwargs: Dict[str, Any] = {"token": token, "timeout": timeout}
        if base_url:
            kwargs["base_url"] = base_url
        self._web = web_client or AsyncWebClient(**kwargs)
        self._retry = {
            "attempts": retry_attempts,
            "base_delay": retry_base_delay,
            "max_delay": retry_max_delay,
        }

    @property
    def token(self) -> str:
        return self._token

    async def _call(self, method: str, func, **kwargs: Any) -> Any:
        return await call_with_retry(method, func, **self._retry, **kwargs)

    # ------------------------------------------------------------------ #
    # Directory
    # ------------------------------------------------------------------ #

    async def users_page(self, cursor: str = "", limit: int = 200) -> Page:
        resp = await self._call("users.list", self._web.users_list, cursor=cursor or None, limit=limit)
        return _page("users.list", resp, "members")

    async def channels_page(self, channel_type: str, cursor: str = "", limit: int = 200) -> Page:
        resp = await self._call(
            "conversations.list",
            self._web.conversations_list,
            types=channel_type,
            cursor=cursor or None,
            limit=limit,
            exclude_archived=False,
        )
        return _page("conversations.list", resp, "channels")

    # ------------------------------------------------------------------ #
    # Messages
    # ------------------------------------------------------------------ #

    async def unread_counts(self) -> Dict[str, List[Dict[str, Any]]]:
        """Return unread state for every conversation the token belongs to.

        The result has ``channels``, ``mpims`` and ``ims`` lists; sections the
        server omits come back empty.
        """

        resp = await self._call("client.counts", self._web.api_call, api_method="client.counts")
        data = _as_dict(resp)
        out: Dict[str, List[Dict[str, Any]]] = {}
        for key in ("channels", "mpims", "ims"):
            section = data.get(key, [])
            if not isinstance(section, list):
                raise MalformedResponseError("client.counts", f"'{key}' is not a list")
            out[key] = [entry for entry in section if isinstance(entry, Mapping) and entry.get("id")]
        return out

    async def history(
        self,
        channel_id: str,
        *,
        limit: int = 100,
        cursor: str = "",
        oldest: str | None = None,
        latest: str | None = None,
    ) -> Page:
        kwargs: Dict[str, Any] = {"channel": channel_id, "limit": limit}
        if cursor:
            kwargs["cursor"] = cursor
        if oldest:
            kwargs["oldest"] = oldest
        if latest:
            kwargs["latest"] = latest
        resp = await self._call("conversations.history", self._web.conversations_history, **kwargs)
        return _page("conversations.history", resp, "messages")

    async def replies(self, channel_id: str, thread_ts: str, *, limit: int = 100, cursor: str = "") -> Page:
        kwargs: Dict[str, Any] = {"channel": channel_id, "ts": thread_ts, "limit": limit}
        if cursor:
            kwargs["cursor"] = cursor
        resp = await self._call("conversations.replies", self._web.conversations_replies, **kwargs)
        return _page("conversations.replies", resp, "messages")

    # ------------------------------------------------------------------ #
    # Canvases
    # ------------------------------------------------------------------ #

    async def canvas_create(self, title: str, markdown: str) -> str:
        resp = await self._call(
            "canvases.create",
            self._web.canvases_create,
            title=title or None,
            document_content={"type": "markdown", "markdown": markdown},
        )
        canvas_id = _as_dict(resp).get("canvas_id")
        if not canvas_id:
            raise MalformedResponseError("canvases.create", "missing 'canvas_id'")
        return str(canvas_id)

    async def canvas_edit(self, canvas_id: str, changes: List[Dict[str, Any]]) -> None:
        await self._call("canvases.edit", self._web.canvases_edit, canvas_id=canvas_id, changes=changes)

    async def canvas_sections(self, canvas_id: str, criteria: Dict[str, Any]) -> List[Dict[str, Any]]:
        resp = await self._call(
            "canvases.sections.lookup",
            self._web.canvases_sections_lookup,
            canvas_id=canvas_id,
            criteria=criteria,
        )
        sections = _as_dict(resp).get("sections", [])
        if not isinstance(sections, list):
            raise MalformedResponseError("canvases.sections.lookup", "'sections' is not a list")
        return sections

    async def file_info(self, file_id: str) -> Dict[str, Any]:
        resp = await self._call("files.info", self._web.files_info, file=file_id)
        info = _as_dict(resp).get("file")
        if not isinstance(info, Mapping):
            raise MalformedResponseError("files.info", "missing 'file' object")
        return dict(info)

    async def download(self, url: str) -> str:
        """Fetch a private file body as text."""

        headers = {}
        # User tokens authenticate downloads with a bearer header.
        if self._token.startswith("xoxp-"):
            headers["Authorization"] = f"Bearer {self._token}"
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as s, s.get(url, headers=headers) as r:
                if r.status != 200:
                    raise RemoteCallError("download", f"status {r.status}")
                return await r.text()
        except aiohttp.ClientError as exc:
            raise RemoteCallError("download", str(exc)) from exc


__all__ = ["Page", "SlackClient"]
