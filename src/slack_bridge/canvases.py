"""Canvas create/edit/lookup/read operations."""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol

from slack_bridge.errors import RemoteCallError, ToolInputError

logger = logging.getLogger(__name__)

DEFAULT_OPERATION = "insert_at_end"
VALID_OPERATIONS = (
    "insert_at_start",
    "insert_at_end",
    "insert_before",
    "insert_after",
    "replace",
    "delete",
)
SECTION_OPERATIONS = frozenset({"insert_before", "insert_after", "delete"})

# files.info fields copied into read results, keyed by output name.
_FILE_FIELDS = {
    "title": "title",
    "name": "name",
    "created": "created",
    "timestamp": "timestamp",
    "mimetype": "mimetype",
    "filetype": "filetype",
    "pretty_type": "pretty_type",
    "size": "size",
    "url": "url_private",
    "permalink": "permalink",
    "user": "user",
    "is_public": "is_public",
    "is_external": "is_external",
    "editable": "editable",
}


class CanvasClient(Protocol):
    async def canvas_create(self, title: str, markdown: str) -> str: ...

    async def canvas_edit(self, canvas_id: str, changes: list[dict]) -> None: ...

    async def canvas_sections(self, canvas_id: str, criteria: dict) -> list[dict]: ...

    async def file_info(self, file_id: str) -> dict: ...

    async def download(self, url: str) -> str: ...


def _require(value: str | None, name: str) -> str:
    if not value:
        raise ToolInputError(f"{name} parameter is required")
    return value


class CanvasService:
    def __init__(self, client: CanvasClient) -> None:
        self._client = client

    async def create(self, title: str, content: str) -> Dict[str, Any]:
        _require(content, "content")
        canvas_id = await self._client.canvas_create(title, content)
        logger.info("Canvas created: %s (%r)", canvas_id, title)
        return {"canvas_id": canvas_id, "title": title, "message": "Canvas created successfully"}

    async def edit(
        self,
        canvas_id: str,
        content: str,
        operation: str | None = None,
        section_id: str | None = None,
    ) -> Dict[str, Any]:
        _require(canvas_id, "canvas_id")
        operation = operation or DEFAULT_OPERATION
        if operation not in VALID_OPERATIONS:
            raise ToolInputError(
                f"Invalid operation: {operation}. Must be one of: {', '.join(VALID_OPERATIONS)}"
            )
        # Deleting a section needs no new content.
        if operation != "delete":
            _require(content, "content")
        if operation in SECTION_OPERATIONS and not section_id:
            raise ToolInputError(f"section_id is required for operation: {operation}")

        change: Dict[str, Any] = {"operation": operation}
        if content:
            change["document_content"] = {"type": "markdown", "markdown": content}
        if section_id:
            change["section_id"] = section_id

        await self._client.canvas_edit(canvas_id, [change])
        logger.info("Canvas %s edited (%s)", canvas_id, operation)
        return {"canvas_id": canvas_id, "operation": operation, "message": "Canvas edited successfully"}

    async def sections_lookup(self, canvas_id: str, contains_text: str | None = None) -> Dict[str, Any]:
        _require(canvas_id, "canvas_id")
        criteria: Dict[str, Any] = {}
        if contains_text:
            criteria["contains_text"] = contains_text
        sections = await self._client.canvas_sections(canvas_id, criteria)
        ids = [{"id": s.get("id")} for s in sections if isinstance(s, dict)]
        logger.info("Canvas %s sections lookup found %d", canvas_id, len(ids))
        return {"canvas_id": canvas_id, "sections": ids, "count": len(ids)}

    async def read(self, canvas_id: str) -> Dict[str, Any]:
        _require(canvas_id, "canvas_id")
        info = await self._client.file_info(canvas_id)

        result: Dict[str, Any] = {"canvas_id": canvas_id}
        for out_key, src_key in _FILE_FIELDS.items():
            result[out_key] = info.get(src_key)
        if info.get("preview"):
            result["preview"] = info["preview"]
        if info.get("preview_highlight"):
            result["preview_highlight"] = info["preview_highlight"]

        download_url = info.get("url_private_download")
        if download_url:
            try:
                result["content"] = await self._client.download(download_url)
            except RemoteCallError as exc:
                logger.warning("Failed to download canvas %s content: %s", canvas_id, exc)
                result["content_error"] = f"Failed to download content: {exc}"
        return result


__all__ = ["CanvasService", "DEFAULT_OPERATION", "SECTION_OPERATIONS", "VALID_OPERATIONS"]
