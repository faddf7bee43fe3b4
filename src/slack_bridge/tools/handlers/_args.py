"""Argument coercion shared by tool handlers."""

from __future__ import annotations

from typing import Any

from slack_bridge.errors import ToolInputError


def get_str(kwargs: dict[str, Any], name: str, default: str = "", *, required: bool = False) -> str:
    value = kwargs.get(name, default)
    if value is None:
        value = default
    if not isinstance(value, str):
        raise ToolInputError(f"'{name}' must be a string")
    if required and not value.strip():
        raise ToolInputError(f"{name} parameter is required")
    return value.strip()


def get_int(kwargs: dict[str, Any], name: str, default: int, *, minimum: int = 1, maximum: int | None = None) -> int:
    value = kwargs.get(name, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ToolInputError(f"'{name}' must be an integer")
    if value < minimum:
        raise ToolInputError(f"'{name}' must be >= {minimum}")
    if maximum is not None:
        value = min(value, maximum)
    return value


def get_bool(kwargs: dict[str, Any], name: str, default: bool = False) -> bool:
    value = kwargs.get(name, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ToolInputError(f"'{name}' must be a boolean")
    return value
