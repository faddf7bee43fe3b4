import os
from pathlib import Path
from typing import List

_DEFAULT_CACHE_DIR = Path(__file__).resolve().parent.parent.parent.parent / "data" / "cache"
_DEFAULT_CHANNEL_TYPES = "public_channel,private_channel,mpim,im"


def _split_types(raw: str) -> List[str]:
    return [token.strip() for token in raw.split(",") if token.strip()]


class Cache:
    def __init__(self, config: dict | None = None) -> None:
        cache_cfg = (config or {}).get("cache", {})
        self.CACHE_DIR: str = str(cache_cfg.get("cache_dir", os.getenv("CACHE_DIR", str(_DEFAULT_CACHE_DIR))))
        # 0 disables age-based staleness; only an explicit refresh replaces the snapshot.
        self.MAX_AGE: float = float(cache_cfg.get("max_age", os.getenv("CACHE_MAX_AGE", "0")))
        self.PAGE_SIZE: int = int(cache_cfg.get("page_size", os.getenv("CACHE_PAGE_SIZE", "200")))

        types_cfg = cache_cfg.get("channel_types")
        if types_cfg:
            self.CHANNEL_TYPES: List[str] = [str(t) for t in types_cfg]
        else:
            self.CHANNEL_TYPES = _split_types(os.getenv("CHANNEL_TYPES", _DEFAULT_CHANNEL_TYPES))
