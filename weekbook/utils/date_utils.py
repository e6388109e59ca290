"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone
from typing import Tuple


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def window_from(start: date, days: int) -> Tuple[date, date]:
    """(start, start + days) as an inclusive lookahead window"""
    return start, start + timedelta(days=days)
