# Configuration for Kaiji Daemon

import os
import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Pattern
import logging

import pytz
from dotenv import load_dotenv

from kaiji.collectors.sites import SITES

# Load .env file from the package directory, then the working directory
load_dotenv(Path(__file__).parent / '.env')
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_KEYWORD_PATTERNS = [
    '(提|連)携',
    '協業',
    '締結',
    '開始',
    'リリース',
    '決定',
    '発売',
    '受賞',
    'パートナー',
    '認定',
    '承認',
    '導入',
    '採(用|択)',
    '特許',
    '受託',
]


def _env(name: str, default: str = '') -> str:
    return os.getenv(name, default).strip()


def _split(value: str, sep: str) -> List[str]:
    return [part.strip() for part in value.split(sep) if part.strip()]


@dataclass
class Config:
    """Daemon configuration from environment variables."""

    # Telegram
    telegram_bot_token: str = field(default_factory=lambda: _env('TELEGRAM_BOT_TOKEN'))
    telegram_chat_ids: List[str] = field(default_factory=lambda: _split(_env('TELEGRAM_CHAT_IDS'), ','))
    telegram_channel_name: str = field(default_factory=lambda: os.getenv('TELEGRAM_CHANNEL_NAME', '一般').strip())

    # Source site
    disclosure_site: str = field(default_factory=lambda: _env('DISCLOSURE_SITE', 'nikkei').lower())
    keyword_patterns: List[str] = field(default_factory=lambda: (
        _split(_env('KEYWORD_PATTERNS'), ';') or list(DEFAULT_KEYWORD_PATTERNS)
    ))

    # Timing
    scan_delay_seconds: float = field(default_factory=lambda: float(_env('SCAN_DELAY_SECONDS', '35')))
    request_timeout: float = field(default_factory=lambda: float(_env('REQUEST_TIMEOUT', '15')))
    timezone: str = field(default_factory=lambda: _env('TIMEZONE', 'Asia/Tokyo'))

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    database_path: str = field(default_factory=lambda: _env('DATABASE_PATH'))

    def __post_init__(self):
        if not self.database_path:
            self.database_path = str(self.base_dir / 'data' / 'kaiji.db')

    @property
    def tz(self):
        return pytz.timezone(self.timezone)

    @property
    def watermark_key(self):
        """(domain, field) under which the last seen time is stored."""
        return (self.disclosure_site, 'lastTime')

    def compiled_patterns(self) -> List[Pattern]:
        return [re.compile(p) for p in self.keyword_patterns]

    def validate(self) -> bool:
        """Check if required config is present."""
        if not self.telegram_bot_token:
            raise ValueError("Environment variable 'TELEGRAM_BOT_TOKEN' is not set")
        if self.disclosure_site not in SITES:
            raise ValueError(f"DISCLOSURE_SITE '{self.disclosure_site}' is not supported")
        if not self.keyword_patterns:
            raise ValueError("KEYWORD_PATTERNS is empty")
        for pattern in self.keyword_patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid keyword pattern '{pattern}': {e}")
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown TIMEZONE '{self.timezone}'")
        return True
