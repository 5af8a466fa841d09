"""
Watermark helpers.

A watermark packs the date and time-of-day of the newest processed entry
into one integer: YYYYMMDD * 10000 + HHMM. Zero means no prior state.
"""

import re
from datetime import date
from typing import Optional

from .models import Row

HM_RE = re.compile(r'^(\d{1,2}):(\d{2})$')


def ymd_of(d: date) -> int:
    """Date as a YYYYMMDD integer."""
    return d.year * 10000 + d.month * 100 + d.day


def slash_date(d: date) -> str:
    return d.strftime('%Y/%m/%d')


def parse_hm(text: str) -> Optional[int]:
    """Parse 'HH:MM' into HHMM, or None when the cell is not a time."""
    m = HM_RE.match((text or '').strip())
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour * 100 + minute


def pack_watermark(ymd: int, hm: int) -> int:
    return ymd * 10000 + hm


def split_watermark(watermark: int):
    """Return (last_date, last_hm)."""
    return watermark // 10000, watermark % 10000


def is_new(watermark: int, row: Row, today: int) -> bool:
    """
    Decide whether a row was published after the watermark.

    Rows have no date of their own, they always belong to `today`.
    Equal times are not new so the boundary entry is not sent twice.
    """
    last_date, last_hm = split_watermark(watermark)
    if last_date < today:
        return True
    hm = parse_hm(row.time)
    return hm is not None and last_hm < hm
