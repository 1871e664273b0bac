"""
Configuration settings for the xkcd search tool.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from xkcd_search.common.utils import default_index_dir

# Remote API settings
XKCD_BASE_URL = "https://xkcd.com"
XKCD_LATEST_PATH = "/info.0.json"
XKCD_COMIC_PATH = "/{num}/info.0.json"
USER_AGENT = "xkcd-search/1.0"
REQUEST_TIMEOUT = 15  # seconds

# Comic 404 was never published
MISSING_COMIC_ID = 404

# Fetch settings
DEFAULT_RATE_INTERVAL = 0.1  # seconds between fetches
DEFAULT_MAX_WORKERS = 8
PROGRESS_LOG_EVERY = 100  # comics

# Index settings
INDEX_DIR_NAME = "xkcdsearch"
QUERY_LIMIT = 10

# Logging
LOGGER_NAME = "xkcd_search"
LOG_FORMAT = '%(asctime)s [%(levelname)s] [xkcd-search] %(message)s'


@dataclass
class SearchConfig:
    """Settings for an XKCDSearch instance.

    Attributes:
        index_dir: Directory holding the Whoosh index. Defaults to the
            platform-local config directory (``~/.config/xkcdsearch`` on Linux).
        rate_interval: Minimum number of seconds between two comic fetches.
            Defaults to 0.1 (100ms). Zero or less disables throttling.
        logger: Logger used by the update and search workflow. Defaults to
            the ``xkcd_search`` logger.
        max_workers: Number of threads allowed to wait on the rate limiter.
        base_url: Root URL of the xkcd JSON API.
    """
    index_dir: Optional[str] = None
    rate_interval: float = DEFAULT_RATE_INTERVAL
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(LOGGER_NAME))
    max_workers: int = DEFAULT_MAX_WORKERS
    base_url: str = XKCD_BASE_URL

    def __post_init__(self):
        if not self.index_dir:
            self.index_dir = default_index_dir(INDEX_DIR_NAME)
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
