"""
Incremental disclosure scanner.

Walks a listing site page by page, newest first, and collects the rows
published after the stored watermark whose title matches one of the
keyword patterns. Pagination stops as soon as a page ends with an entry
that was already seen.
"""

import asyncio
import logging
import re
from datetime import date, datetime
from typing import Iterable, List, Optional, Pattern, Union

import pytz
from bs4 import BeautifulSoup

from .models import Disclosure, Entry, Row
from .page_fetcher import PageFetcher
from .sites import SiteAdapter
from .watermark import is_new, pack_watermark, parse_hm, slash_date, ymd_of

logger = logging.getLogger(__name__)

JST = pytz.timezone('Asia/Tokyo')

KeywordPattern = Union[str, Pattern]


def compile_patterns(patterns: Iterable[KeywordPattern]) -> List[Pattern]:
    return [re.compile(p) if isinstance(p, str) else p for p in patterns]


def matches_any(title: str, patterns: List[Pattern]) -> bool:
    return any(p.search(title) for p in patterns)


class DisclosureScanner:
    """Scans one disclosure site for entries newer than a watermark."""

    def __init__(self, adapter: SiteAdapter, fetcher: Optional[PageFetcher] = None, tz=JST):
        self.adapter = adapter
        self.fetcher = fetcher or PageFetcher()
        self.tz = tz

    async def scan(
        self,
        watermark: int,
        keyword_patterns: Iterable[KeywordPattern],
        now: Optional[datetime] = None
    ) -> Disclosure:
        """
        Collect new matching entries.

        Args:
            watermark: Packed YYYYMMDDHHMM of the newest processed entry, 0 if none
            keyword_patterns: Regular expressions tested against titles (any match)
            now: Scan time, defaults to the current time in the site timezone

        Returns:
            Disclosure with the newest timestamp seen on page 1 and the
            matching entries, newest first
        """
        patterns = compile_patterns(keyword_patterns)
        scan_date = (now or datetime.now(self.tz)).date()
        today = ymd_of(scan_date)
        watermark = int(watermark or 0)

        disclosure = Disclosure()
        page = 1
        try:
            while True:
                html = await asyncio.to_thread(self.fetcher.fetch_page, self.adapter, page, scan_date)
                if not html:
                    logger.debug(f"No data for {self.adapter.name} page {page}")
                    return disclosure

                soup = BeautifulSoup(html, 'html.parser')
                rows = self.adapter.parse_rows(soup)
                if not rows:
                    return disclosure

                if page == 1:
                    hm = parse_hm(rows[0].time)
                    if hm is not None:
                        disclosure.latest_entry_time = pack_watermark(today, hm)
                    else:
                        logger.warning(f"Unreadable time '{rows[0].time}' on first row, watermark not advanced")

                candidates = [
                    row for row in rows
                    if is_new(watermark, row, today)
                    and self.adapter.is_eligible(row)
                    and matches_any(row.title, patterns)
                ]
                logger.info(f"{self.adapter.name} page {page}: {len(rows)} rows, {len(candidates)} matched")
                disclosure.entries.extend(await self._enrich_all(candidates, scan_date))

                if not is_new(watermark, rows[-1], today):
                    return disclosure
                if not self.adapter.has_next_page(soup):
                    return disclosure
                page += 1
        except Exception:
            logger.exception(f"Scan of {self.adapter.name} aborted on page {page}")
            return disclosure

    async def _enrich_all(self, rows: List[Row], scan_date: date) -> List[Entry]:
        # gather keeps argument order regardless of completion order
        return list(await asyncio.gather(*(self.enrich(row, scan_date) for row in rows)))

    async def enrich(self, row: Row, scan_date: date) -> Entry:
        """Turn a matched row into an entry, looking up its attached document."""
        entry = Entry(
            time=f"{slash_date(scan_date)} {row.time}",
            stock_code=row.stock_code,
            company_name=row.company_name,
            title=row.title,
            page_url=row.detail_link,
        )
        try:
            detail_url = self.adapter.detail_url(row)
            detail_html = None
            if detail_url:
                detail_html = await asyncio.to_thread(self.fetcher.fetch, detail_url)
            entry.file_url = self.adapter.document_url(row, detail_html)
        except Exception as e:
            logger.warning(f"Could not resolve document for '{row.title}': {e}")
        return entry
