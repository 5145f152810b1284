"""
Calendar Period Helpers

All timestamps are stored as naive UTC. Monthly quotas reset on the calendar
month of the operating timezone, so period boundaries are computed there and
converted back to naive UTC for comparison against stored values.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from core.config import get_settings

settings = get_settings()


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.utcnow()


def operating_tz() -> ZoneInfo:
    return ZoneInfo(settings.OPERATING_TIMEZONE)


def _to_local(now_utc: datetime) -> datetime:
    return now_utc.replace(tzinfo=timezone.utc).astimezone(operating_tz())


def _to_naive_utc(local_dt: datetime) -> datetime:
    return local_dt.astimezone(timezone.utc).replace(tzinfo=None)


def month_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Get the current calendar month as a half-open [start, end) range.

    Args:
        now: Naive UTC reference time (defaults to the current time)

    Returns:
        tuple: (period_start, next_period_start), both naive UTC
    """
    local = _to_local(now or utcnow())
    start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return _to_naive_utc(start), _to_naive_utc(end)
