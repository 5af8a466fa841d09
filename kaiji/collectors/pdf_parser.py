"""
PDF retrieval for disclosure attachments.
Downloads a disclosure document and renders the first page of a PDF to PNG
so chat clients can preview it inline.
"""

import logging
import posixpath
from typing import Optional, Tuple
from urllib.parse import urlparse

import fitz  # PyMuPDF
import requests

from .models import Attachment
from .page_fetcher import DEFAULT_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


class PDFParser:
    """Downloads documents and converts PDFs into a single-page image."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, dpi: int = 150):
        self.timeout = timeout
        self.dpi = dpi
        self.session = requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})

    def download(self, url: str) -> Optional[Tuple[bytes, str]]:
        """
        Download a document.

        Args:
            url: Document URL

        Returns:
            (content, content type) or None if the download failed
        """
        try:
            logger.info(f"Downloading document: {url[:80]}...")
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to download document: {e}")
            return None
        return response.content, response.headers.get('content-type', '')

    @staticmethod
    def is_pdf(content: bytes, content_type: str) -> bool:
        return 'application/pdf' in (content_type or '').lower() or content[:4] == b'%PDF'

    def render_first_page(self, pdf_content: bytes) -> bytes:
        """Render page 1 of a PDF as PNG bytes."""
        doc = fitz.open(stream=pdf_content, filetype="pdf")
        try:
            pixmap = doc[0].get_pixmap(dpi=self.dpi)
            return pixmap.tobytes("png")
        finally:
            doc.close()

    def fetch_as_attachment(self, url: Optional[str]) -> Optional[Attachment]:
        """
        Fetch a document ready to be attached to a message.

        PDFs are converted to a PNG of their first page. If the conversion
        fails the original PDF is returned instead.
        """
        if not url:
            return None

        downloaded = self.download(url)
        if downloaded is None:
            return None
        content, content_type = downloaded
        filename = posixpath.basename(urlparse(url).path) or 'document'

        if not self.is_pdf(content, content_type):
            return Attachment(content, filename, content_type or 'application/octet-stream')

        try:
            png = self.render_first_page(content)
        except Exception as e:
            logger.error(f"PDF conversion failed for {filename}: {e}")
            return Attachment(content, filename, 'application/pdf')

        stem, _ = posixpath.splitext(filename)
        return Attachment(png, f"{stem}.png", 'image/png')
