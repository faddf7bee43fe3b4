import os


class Unreads:
    def __init__(self, config: dict | None = None) -> None:
        unread_cfg = (config or {}).get("unreads", {})
        self.MAX_CHANNELS: int = int(unread_cfg.get("max_channels", os.getenv("UNREADS_MAX_CHANNELS", "50")))
        self.MAX_MESSAGES: int = int(unread_cfg.get("max_messages", os.getenv("UNREADS_MAX_MESSAGES", "10")))
        self.HISTORY_CONCURRENCY: int = int(
            unread_cfg.get("history_concurrency", os.getenv("UNREADS_HISTORY_CONCURRENCY", "5"))
        )
