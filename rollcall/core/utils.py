"""General utility functions."""
import uuid
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a 32-character hex record id."""
    return uuid.uuid4().hex


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # Assume UTC if no timezone
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_optional_utc(dt: Optional[datetime]) -> Optional[datetime]:
    return to_utc(dt) if dt is not None else None


def to_timezone(dt: datetime, tz: ZoneInfo) -> datetime:
    """Convert datetime to specified timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def start_of_day(now: datetime, tz: ZoneInfo) -> datetime:
    """
    Local midnight of the day containing ``now``, returned in UTC.

    Args:
        now: Reference instant (naive values are treated as UTC)
        tz: Zone whose calendar day boundaries apply
    """
    local_date = to_timezone(now, tz).date()
    return datetime.combine(local_date, time.min, tzinfo=tz).astimezone(timezone.utc)


def start_of_next_day(now: datetime, tz: ZoneInfo) -> datetime:
    """Local midnight following ``now``, returned in UTC."""
    local_date = to_timezone(now, tz).date() + timedelta(days=1)
    return datetime.combine(local_date, time.min, tzinfo=tz).astimezone(timezone.utc)
