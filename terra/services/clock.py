"""Wall-clock access and calendar helpers.

Services never read the clock themselves: the HTTP layer and the expiration
job call ``utcnow()`` once and pass the instant down as ``now``.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(now: datetime) -> datetime:
    return datetime(now.year, now.month, now.day)


def start_of_month(now: datetime) -> datetime:
    return datetime(now.year, now.month, 1)


def trailing_days(now: datetime, days: int) -> list[date]:
    """Calendar days ending today, oldest first."""
    today = now.date()
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
