# Disclosure message formatting for Daemon

import logging
from html import escape
from typing import List, Optional

from kaiji.collectors.models import Entry
from kaiji_daemon.config import Config

logger = logging.getLogger(__name__)


def format_entry(entry: Entry) -> str:
    """Telegram HTML message for one disclosure entry."""
    url = entry.file_url or entry.page_url
    return (
        f"【<b>{escape(entry.company_name)}</b> ({escape(entry.stock_code)})】"
        f"{escape(entry.title)} ({escape(entry.time)})\n"
        f"{escape(url)}"
    )


def format_watermark(watermark: Optional[int]) -> str:
    """Render a packed watermark as 'YYYY/MM/DD HH:MM'."""
    if not watermark:
        return 'never'
    ymd, hm = divmod(watermark, 10000)
    s = f"{ymd:08d}"
    return f"{s[:4]}/{s[4:6]}/{s[6:]} {hm // 100:02d}:{hm % 100:02d}"


def format_status(config: Config, watermark: Optional[int], chat_ids: List[int], now) -> str:
    return f"""
<b>🤖 Bot Status</b>
━━━━━━━━━━━━━━━
Time: {now.strftime('%H:%M:%S %Z')}
Site: {escape(config.disclosure_site)}
Last entry: {format_watermark(watermark)}
Keywords: {len(config.keyword_patterns)} patterns
Chats: {len(chat_ids)}
Status: ✅ Running
    """.strip()
