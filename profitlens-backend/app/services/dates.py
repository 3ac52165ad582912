from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional


def as_utc_datetime(value: Optional[object]) -> Optional[datetime]:
    """Coerce a stored timestamp to an aware UTC datetime; anything unusable becomes None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        return as_utc_datetime(parsed)
    return None


def as_date(value: Optional[object]) -> Optional[date]:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    moment = as_utc_datetime(value)
    return moment.date() if moment else None


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
