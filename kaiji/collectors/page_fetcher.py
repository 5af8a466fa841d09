"""
HTTP fetcher for disclosure listing and detail pages.
Transport problems are reported as "no data" instead of raising.
"""

import logging
import threading
from datetime import date
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
USER_AGENT = 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36'


class PageFetcher:
    """
    Fetches HTML pages with a bounded timeout.

    Detail pages are fetched from worker threads, so each thread gets its
    own requests.Session.
    """

    HEADERS = {
        'User-Agent': USER_AGENT,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'ja,en-US;q=0.9,en;q=0.8',
    }

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.HEADERS)
            self._local.session = session
        return session

    def fetch(self, url: str) -> Optional[str]:
        """
        Fetch a page.

        Args:
            url: Page URL

        Returns:
            HTML text, or None on timeout, network error or non-success status
        """
        if not url:
            return None
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Fetch failed for {url}: {e}")
            return None

        # Listing pages do not always declare their charset
        if response.encoding is None or response.encoding.lower() == 'iso-8859-1':
            response.encoding = response.apparent_encoding
        return response.text

    def fetch_page(self, adapter, page: int, today: date) -> Optional[str]:
        """Fetch listing page `page` (1-based) of a site."""
        url = adapter.page_url(page, today)
        logger.debug(f"Fetching {adapter.name} page {page}: {url}")
        return self.fetch(url)
