"""UTC datetime utilities."""

import calendar
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def add_months(start: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length.

    2026-01-31 + 1 month -> 2026-02-28.
    """
    if months < 0:
        raise ValueError(f"months must be >= 0, got {months}")
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)
