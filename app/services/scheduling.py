"""
Clock helpers for the coaching engine.

Timestamps are stored and queried in UTC. Calendar days, meal windows and
member send times are interpreted in the deployment timezone
(settings.coaching_timezone).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings

MINUTES_PER_DAY = 1440


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime. Naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.coaching_timezone)


def to_local(value: datetime) -> datetime:
    return ensure_utc(value).astimezone(local_zone())


def local_day_bounds(now: datetime, days_ago: int = 0) -> tuple[datetime, datetime]:
    """
    UTC bounds [start, end) of a local calendar day.

    Args:
        now: Reference instant
        days_ago: 0 for today, 1 for yesterday, ...

    Returns:
        (start_utc, end_utc) tuple
    """
    local_now = to_local(now)
    day = local_now.date() - timedelta(days=days_ago)
    zone = local_zone()
    start = datetime(day.year, day.month, day.day, tzinfo=zone)
    next_day = day + timedelta(days=1)
    end = datetime(next_day.year, next_day.month, next_day.day, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_time_today(now: datetime, hour: int, minute: int = 0) -> datetime:
    """UTC instant of HH:MM on the local calendar day containing now."""
    local_now = to_local(now)
    local = datetime(
        local_now.year, local_now.month, local_now.day, hour, minute, tzinfo=local_zone()
    )
    return local.astimezone(timezone.utc)


def parse_hhmm(value: str) -> int:
    """Parse "HH:MM" into minutes past midnight."""
    try:
        hour_text, minute_text = value.strip().split(":")
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return hour * 60 + minute


def circular_minute_distance(a: int, b: int) -> int:
    """Distance between two minutes-of-day, wrapping around midnight."""
    diff = abs(a - b) % MINUTES_PER_DAY
    return min(diff, MINUTES_PER_DAY - diff)


def is_within_send_window(
    configured: Optional[str],
    now: datetime,
    tolerance_minutes: Optional[int] = None,
) -> bool:
    """
    Check whether now (local) is close enough to a configured send time.

    `configured` may hold one "HH:MM" value or a comma-separated list, in which
    case any entry matching is enough. Missing configuration always matches.
    """
    if not configured or not configured.strip():
        return True
    if tolerance_minutes is None:
        tolerance_minutes = settings.send_time_tolerance_minutes

    local_now = to_local(now)
    current = local_now.hour * 60 + local_now.minute
    for entry in configured.split(","):
        if not entry.strip():
            continue
        if circular_minute_distance(parse_hhmm(entry), current) <= tolerance_minutes:
            return True
    return False
