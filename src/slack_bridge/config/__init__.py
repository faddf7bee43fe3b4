"""Application configuration"""

import logging
from dotenv import load_dotenv

from .loader import load_bridge_config
from .core import Core
from .cache import Cache
from .unreads import Unreads

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("slack_sdk").setLevel(logging.WARNING)
logging.getLogger("aiohttp").setLevel(logging.WARNING)

_BRIDGE_CONFIG = load_bridge_config()

core = Core(_BRIDGE_CONFIG)
cache = Cache(_BRIDGE_CONFIG)
unreads = Unreads(_BRIDGE_CONFIG)

__all__ = ["core", "cache", "unreads"]
