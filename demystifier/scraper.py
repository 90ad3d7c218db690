"""
Web Scraper Module

Fetches policy pages for raw-markup extraction:
- Single attempt per URL (no retry; retry policy belongs to the caller)
- Configured User-Agent and timeout
- Session released on close / context exit
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from demystifier.config import settings
from demystifier.exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass
class FetchedPage:
    """Represents a fetched page."""
    url: str
    html: str
    status_code: int


class PageFetcher:
    """Fetches pages over HTTP."""

    def __init__(self, timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        """Initialize fetcher."""
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': settings.user_agent})
        self.timeout = settings.http_timeout if timeout is None else timeout

    def fetch(self, url: str) -> FetchedPage:
        """
        Fetch a page.

        Args:
            url: URL to fetch

        Returns:
            FetchedPage with the response body

        Raises:
            FetchError: on transport errors or an error status
        """
        logger.info(f"Fetching {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request error fetching {url}: {e}")
            raise FetchError(url, f"Request failed: {e}") from e

        if not response.ok:
            logger.error(f"HTTP {response.status_code} fetching {url}")
            raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)

        logger.info(f"Fetched {len(response.text)} chars from {url}")
        return FetchedPage(url=response.url or url, html=response.text, status_code=response.status_code)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
