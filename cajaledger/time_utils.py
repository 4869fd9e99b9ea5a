from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """System 'now' in UTC (naive, canonical). Used for created_at/updated_at."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_now() -> datetime:
    """Business 'now' in server local time (naive). Used for register dates."""
    return datetime.now()


def day_bounds(day: Union[date, datetime]) -> tuple[datetime, datetime]:
    """
    Inclusive local-time bounds of a business day.

    A business day runs from 00:00:00.000 to 23:59:59.999, matching how
    registers are filtered by date.
    """
    if isinstance(day, datetime):
        day = day.date()
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time(23, 59, 59, 999000))
    return start, end


def parse_business_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse a business date.

    - None / "" -> None
    - date / datetime -> its date
    - "YYYY-MM-DD" or any ISO-8601 datetime string -> its date part
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    if len(s) == 10:
        return date.fromisoformat(s)
    return datetime.fromisoformat(s).date()


def days_ago(now: datetime, days: int) -> datetime:
    """Start of the business day ``days`` days before ``now``."""
    start, _ = day_bounds(now - timedelta(days=days))
    return start


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def to_local_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serializes a local business timestamp without offset."""
    if dt is None:
        return None
    return dt.replace(microsecond=0).isoformat()
