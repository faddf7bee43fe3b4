from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict

DEFAULT_CONFIG_PATH = Path("config.toml")
CONFIG_ENV = "SLACK_BRIDGE_CONFIG"
CONFIG_TABLE = "slackbridge"


def config_path() -> Path:
    """Path of the config file: ``$SLACK_BRIDGE_CONFIG`` or ``./config.toml``."""

    override = os.getenv(CONFIG_ENV, "").strip()
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_bridge_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Return the ``[slackbridge]`` table of the config file.

    A missing file or table yields ``{}`` so every section falls back to
    environment variables. Any other top-level tables are ignored.
    """
    target = Path(path) if path is not None else config_path()
    if not target.is_file():
        return {}

    with target.open("rb") as handle:
        table = tomllib.load(handle).get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ValueError(f"[{CONFIG_TABLE}] in {target} must be a table")
    return table


__all__ = ["CONFIG_ENV", "DEFAULT_CONFIG_PATH", "config_path", "load_bridge_config"]
