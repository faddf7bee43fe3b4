import logging
import os

logger = logging.getLogger(__name__)


class Core:
    def __init__(self, config: dict | None = None) -> None:
        cfg = config or {}
        slack_cfg = cfg.get("slack", {})
        limits_cfg = cfg.get("limits", {})

        token_env = str(slack_cfg.get("token_env", "SLACK_TOKEN"))

        self.SLACK_TOKEN: str | None = os.getenv(token_env)
        self.WORKSPACE_URL: str = str(slack_cfg.get("workspace_url") or os.getenv("SLACK_WORKSPACE_URL", ""))
        self.API_BASE_URL: str | None = slack_cfg.get("api_base_url") or os.getenv("SLACK_API_BASE_URL") or None

        self.REQUEST_TIMEOUT: int = int(limits_cfg.get("request_timeout", os.getenv("REQUEST_TIMEOUT", "30")))
        self.RETRY_ATTEMPTS: int = int(limits_cfg.get("retry_attempts", os.getenv("RETRY_ATTEMPTS", "4")))
        self.RETRY_BASE_DELAY: float = float(limits_cfg.get("retry_base_delay", os.getenv("RETRY_BASE_DELAY", "1.0")))
        self.RETRY_MAX_DELAY: float = float(limits_cfg.get("retry_max_delay", os.getenv("RETRY_MAX_DELAY", "30.0")))

        required = [
            ("SLACK_TOKEN", self.SLACK_TOKEN),
        ]
        missing = [name for name, val in required if not val]
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")

        if self.RETRY_ATTEMPTS < 1:
            logger.warning("RETRY_ATTEMPTS=%s is below 1; using a single attempt.", self.RETRY_ATTEMPTS)
            self.RETRY_ATTEMPTS = 1
