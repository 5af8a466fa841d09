"""
Data models for scraped disclosures.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional


@dataclass
class Row:
    """One table row of a disclosure listing page."""
    time: str
    stock_code: str
    company_name: str
    title: str
    detail_link: str
    category: str = ''


@dataclass
class Entry:
    """A matched row, ready to be delivered."""
    time: str
    stock_code: str
    company_name: str
    title: str
    page_url: str
    file_url: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Disclosure:
    """Result of one scan."""
    latest_entry_time: int = 0
    entries: List[Entry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'latest_entry_time': self.latest_entry_time,
            'entries': [e.to_dict() for e in self.entries],
        }


@dataclass
class Attachment:
    content: bytes
    filename: str
    content_type: str = 'application/octet-stream'

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith('image/')
