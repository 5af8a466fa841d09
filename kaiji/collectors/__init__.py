"""Disclosure collectors for Kaiji."""

from .disclosure_scraper import DisclosureScanner
from .models import Attachment, Disclosure, Entry, Row
from .page_fetcher import PageFetcher
from .pdf_parser import PDFParser
from .sites import NikkeiAdapter, SiteAdapter, TdnetAdapter, get_site

__all__ = [
    'DisclosureScanner', 'PageFetcher', 'PDFParser',
    'SiteAdapter', 'NikkeiAdapter', 'TdnetAdapter', 'get_site',
    'Row', 'Entry', 'Disclosure', 'Attachment',
]
