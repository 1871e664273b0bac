"""
Client for the xkcd JSON API.
Provides the comic metadata the indexer builds its documents from.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from xkcd_search.common.config import (
    REQUEST_TIMEOUT, USER_AGENT, XKCD_BASE_URL,
    XKCD_COMIC_PATH, XKCD_LATEST_PATH
)
from xkcd_search.common.errors import ComicNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Comic:
    """Metadata of a single xkcd comic."""
    num: int
    title: str
    alt: str
    img: str
    safe_title: str = ''
    transcript: str = ''
    link: str = ''
    news: str = ''
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None

    @classmethod
    def from_json(cls, data):
        """Build a Comic from an info.0.json payload."""
        def _int_or_none(value):
            try:
                return int(value)
            except (TypeError, ValueError):
                return None

        return cls(
            num=int(data['num']),
            title=data.get('title', ''),
            alt=data.get('alt', ''),
            img=data.get('img', ''),
            safe_title=data.get('safe_title', ''),
            transcript=data.get('transcript', ''),
            link=data.get('link', ''),
            news=data.get('news', ''),
            year=_int_or_none(data.get('year')),
            month=_int_or_none(data.get('month')),
            day=_int_or_none(data.get('day')),
        )

    @property
    def published(self):
        """Publication date as YYYY-MM-DD, or an empty string when unknown."""
        if not (self.year and self.month and self.day):
            return ''
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


class XKCDClient:
    """Fetches comic metadata over HTTP."""

    def __init__(self, base_url=XKCD_BASE_URL, timeout=REQUEST_TIMEOUT, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

    def _get_json(self, path):
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def latest(self):
        """Return the most recent comic."""
        return Comic.from_json(self._get_json(XKCD_LATEST_PATH))

    def get(self, num):
        """Return comic number num.

        Raises:
            ComicNotFoundError: the API answered 404 for this comic.
            requests.RequestException: any other HTTP or network failure.
        """
        try:
            data = self._get_json(XKCD_COMIC_PATH.format(num=num))
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise ComicNotFoundError(num) from e
            raise
        return Comic.from_json(data)

    def close(self):
        self.session.close()
