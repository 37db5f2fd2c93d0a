from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger


def local_today(tz_name: Optional[str] = None) -> date:
    """
    Current calendar day in the given IANA zone, or in the process-local
    zone when tz_name is empty. This is the only place that reads the clock;
    everything downstream takes the day as an argument.
    """
    if not tz_name:
        return datetime.now().astimezone().date()
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning("Unknown timezone '{}', using local time: {}", tz_name, e)
        return datetime.now().astimezone().date()
    return datetime.now(zone).date()


def day_key(day: date) -> str:
    """Sortable key for a calendar day, e.g. '2024-05-11'."""
    if isinstance(day, datetime):
        day = day.date()
    return day.isoformat()


def parse_day_key(key: str) -> date:
    return date.fromisoformat(key)


def previous_day(day: date) -> date:
    return day - timedelta(days=1)


def weekday_index(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7
