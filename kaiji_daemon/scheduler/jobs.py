# Scheduled Jobs for Kaiji Daemon

import asyncio
import json
import logging
from typing import Optional

from kaiji.collectors.disclosure_scraper import DisclosureScanner
from kaiji.collectors.page_fetcher import PageFetcher
from kaiji.collectors.pdf_parser import PDFParser
from kaiji.collectors.sites import get_site
from kaiji.database.db_manager import DatabaseManager, WatermarkStore
from kaiji_daemon.analyzers.disclosures import format_entry
from kaiji_daemon.config import Config

logger = logging.getLogger(__name__)


class ScheduledJobs:
    """Disclosure polling job."""

    def __init__(self, config: Config, telegram_bot, scanner: Optional[DisclosureScanner] = None,
                 store: Optional[WatermarkStore] = None, pdf_parser: Optional[PDFParser] = None):
        self.config = config
        self.telegram = telegram_bot
        self.scanner = scanner or DisclosureScanner(
            get_site(config.disclosure_site),
            PageFetcher(timeout=config.request_timeout),
            tz=config.tz
        )
        self.store = store or WatermarkStore(DatabaseManager(config.database_path))
        self.pdf_parser = pdf_parser or PDFParser(timeout=config.request_timeout)
        self.patterns = config.compiled_patterns()
        self._lock = asyncio.Lock()

    def current_watermark(self) -> int:
        return self.store.get(self.config.watermark_key) or 0

    def reset_watermark(self):
        self.store.delete(self.config.watermark_key)
        logger.info("Watermark cleared")

    # ============================================================
    # EVERY MINUTE - DISCLOSURE POLL
    # ============================================================
    async def poll_disclosures(self):
        """Cron entry point: let the site publish, then run one cycle."""
        await asyncio.sleep(self.config.scan_delay_seconds)
        await self.run_cycle()

    async def run_cycle(self) -> Optional[int]:
        """
        Scan for new disclosures and deliver them.

        Returns:
            Number of delivered entries, or None when another cycle is running
        """
        if self._lock.locked():
            logger.warning("Previous disclosure scan still running, skipping this tick")
            return None

        async with self._lock:
            last_time = await asyncio.to_thread(self.current_watermark)
            disclosure = await self.scanner.scan(last_time, self.patterns)

            if disclosure.latest_entry_time > last_time:
                await asyncio.to_thread(self.store.set, self.config.watermark_key, disclosure.latest_entry_time)

            if not disclosure.entries:
                logger.info("No matching entry")
                return 0

            logger.info(json.dumps(disclosure.to_dict(), ensure_ascii=False))
            for entry in disclosure.entries:
                text = format_entry(entry)
                try:
                    attachment = await asyncio.to_thread(self.pdf_parser.fetch_as_attachment, entry.file_url)
                except Exception as e:
                    logger.error(f"Attachment error for {entry.file_url}: {e}")
                    attachment = None
                await self.telegram.send_entry(text, attachment)

            return len(disclosure.entries)
