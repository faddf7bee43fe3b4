"""Bounded retry for Slack Web API calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

import aiohttp
from slack_sdk.errors import SlackApiError

from slack_bridge.errors import RemoteCallError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]


def _status(exc: SlackApiError) -> int | None:
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None)


def _slack_error(exc: SlackApiError) -> str:
    response = getattr(exc, "response", None)
    try:
        return str(response.get("error") or "")  # type: ignore[union-attr]
    except AttributeError:
        return ""


def retry_after(exc: SlackApiError) -> float | None:
    """Return the server-requested wait for a rate-limited call, if any."""

    if _status(exc) != 429 and _slack_error(exc) != "ratelimited":
        return None
    headers = getattr(getattr(exc, "response", None), "headers", None) or {}
    try:
        return float(headers.get("Retry-After", headers.get("retry-after", 1)))
    except (TypeError, ValueError):
        return 1.0


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ClientError)):
        return True
    if isinstance(exc, SlackApiError):
        if retry_after(exc) is not None:
            return True
        status = _status(exc)
        return status is not None and status >= 500
    return False


async def call_with_retry(
    method: str,
    func: Callable[..., Awaitable[T]],
    *,
    attempts: int = 4,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    sleep: Sleep = asyncio.sleep,
    **kwargs: Any,
) -> T:
    """Await ``func(**kwargs)``, retrying transient failures.

    Rate-limit responses wait for ``Retry-After``; server errors, timeouts and
    connection errors back off exponentially from ``base_delay``. Every wait is
    capped at ``max_delay``. Once ``attempts`` are spent, or on a permanent
    error, a :class:`RemoteCallError` is raised. Cancellation propagates
    untouched.
    """

    attempt = 0
    while True:
        attempt += 1
        try:
            return await func(**kwargs)
        except (SlackApiError, asyncio.TimeoutError, aiohttp.ClientError) as exc:
            reason = _slack_error(exc) if isinstance(exc, SlackApiError) else ""
            reason = reason or str(exc) or exc.__class__.__name__
            if not is_transient(exc):
                raise RemoteCallError(method, reason) from exc
            if attempt >= attempts:
                logger.warning("%s failed after %d attempt(s): %s", method, attempt, reason)
                raise RemoteCallError(method, reason) from exc

            wait = retry_after(exc) if isinstance(exc, SlackApiError) else None
            if wait is None:
                wait = base_delay * (2 ** (attempt - 1))
            wait = min(wait, max_delay)
            logger.info(
                "%s transient failure (%s); retrying in %.1fs (attempt %d/%d)",
                method,
                reason,
                wait,
                attempt,
                attempts,
            )
            await sleep(wait)


__all__ = ["call_with_retry", "is_transient", "retry_after"]
