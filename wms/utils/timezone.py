# FILE: wms/utils/timezone.py
from __future__ import annotations

from datetime import datetime


def now_local() -> datetime:
    """
    Naive local server time. All DateTime columns are naive, so comparisons
    stay consistent between MySQL and SQLite.
    """
    return datetime.now()


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
