"""
Site adapters for disclosure listings.

Each adapter knows the listing URL scheme, the table selectors and where the
attached PDF lives. The scan loop itself is shared, see disclosure_scraper.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional, Union
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from .models import Row

logger = logging.getLogger(__name__)


def _as_soup(html: Union[str, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or '', 'html.parser')


def _text(node: Optional[Tag]) -> str:
    return node.get_text(strip=True) if node is not None else ''


def _href(node: Optional[Tag]) -> str:
    if node is None:
        return ''
    return (node.get('href') or '').strip()


class SiteAdapter(ABC):
    """Selectors and URL scheme of one disclosure listing site."""

    name: str = ''
    base_url: str = ''

    @abstractmethod
    def page_url(self, page: int, today: date) -> str:
        """URL of listing page `page` (1-based) for `today`."""

    @abstractmethod
    def parse_rows(self, html: Union[str, BeautifulSoup]) -> List[Row]:
        """Rows of the listing table in document order (newest first)."""

    @abstractmethod
    def has_next_page(self, html: Union[str, BeautifulSoup]) -> bool:
        """Whether the page links to a following page."""

    def is_eligible(self, row: Row) -> bool:
        """Site specific filter applied next to keyword matching."""
        return True

    def detail_url(self, row: Row) -> Optional[str]:
        """Page to fetch to find the attached document, if any."""
        return None

    def document_url(self, row: Row, detail_html: Optional[str]) -> Optional[str]:
        """Attached document URL for a row."""
        return None

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"


class NikkeiAdapter(SiteAdapter):
    """Nikkei 'kigyo disclose' listing of the current day."""

    name = 'nikkei'
    base_url = 'https://www.nikkei.com'

    CATEGORY_MARKER = 'PR'
    PDF_LOCATION_RE = re.compile(r'pdfLocation.+?(/.+\.pdf)')
    SCODE_RE = re.compile(r'scode=(\w+)$')

    def page_url(self, page: int, today: date) -> str:
        return f"{self.base_url}/markets/kigyo/disclose/?SelDateDiff=0&hm={page}"

    def parse_rows(self, html) -> List[Row]:
        soup = _as_soup(html)
        rows = []
        for tr in soup.select('#IR1600 tr'):
            cells = tr.find_all('td', recursive=False)
            if not cells:
                continue  # header
            rows.append(self._parse_row(cells))
        return rows

    def _parse_row(self, cells: List[Tag]) -> Row:
        def cell(i: int) -> Optional[Tag]:
            return cells[i] if len(cells) > i else None

        time_cell = cell(0)
        name_link = cell(1).find('a') if cell(1) is not None else None
        title_link = cell(3).find('a') if cell(3) is not None else None

        code = ''
        match = self.SCODE_RE.search(_href(name_link))
        if match:
            code = match.group(1)

        return Row(
            time=_text(time_cell),
            stock_code=code,
            company_name=_text(name_link),
            title=_text(title_link),
            detail_link=self._detail_link(_href(title_link)),
            category=_text(cell(2)),
        )

    @staticmethod
    def _detail_link(href: str) -> str:
        # The title links to a viewer page, the real page is in the 't' parameter
        if not href:
            return ''
        values = parse_qs(urlparse(href).query).get('t')
        return values[0] if values else ''

    def has_next_page(self, html) -> bool:
        soup = _as_soup(html)
        return soup.select_one('div.searchResolutTop li.nextPageLink > a') is not None

    def is_eligible(self, row: Row) -> bool:
        return self.CATEGORY_MARKER in row.category

    def detail_url(self, row: Row) -> Optional[str]:
        return row.detail_link or None

    def document_url(self, row: Row, detail_html: Optional[str]) -> Optional[str]:
        if not detail_html:
            return None
        match = self.PDF_LOCATION_RE.search(detail_html)
        if not match:
            return None
        return self.base_url + match.group(1)


class TdnetAdapter(SiteAdapter):
    """TDnet timely disclosure listing (I_list pages)."""

    name = 'tdnet'
    base_url = 'https://www.release.tdnet.info/inbs/'

    def page_url(self, page: int, today: date) -> str:
        return f"{self.base_url}I_list_{page:03d}_{today.strftime('%Y%m%d')}.html"

    def parse_rows(self, html) -> List[Row]:
        soup = _as_soup(html)
        rows = []
        for tr in soup.select('#main-list-table tr'):
            if tr.find('td') is None:
                continue
            title_link = tr.select_one('td.kjTitle a')
            href = _href(title_link)
            rows.append(Row(
                time=_text(tr.select_one('td.kjTime')),
                stock_code=_text(tr.select_one('td.kjCode')),
                company_name=_text(tr.select_one('td.kjName')),
                title=_text(title_link) or _text(tr.select_one('td.kjTitle')),
                detail_link=urljoin(self.base_url, href) if href else '',
            ))
        return rows

    def has_next_page(self, html) -> bool:
        soup = _as_soup(html)
        return soup.select_one('div.pager-R[onclick]') is not None

    def document_url(self, row: Row, detail_html: Optional[str]) -> Optional[str]:
        # The title already links to the PDF
        return row.detail_link or None


SITES: Dict[str, type] = {
    NikkeiAdapter.name: NikkeiAdapter,
    TdnetAdapter.name: TdnetAdapter,
}


def get_site(name: str) -> SiteAdapter:
    """Instantiate the adapter registered under `name`."""
    try:
        return SITES[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown disclosure site '{name}' (choose from {', '.join(sorted(SITES))})")
