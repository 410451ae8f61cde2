# backend/scheduler/services/scheduling/time_utils.py
"""
Time interval helpers.

Times are local "HH:MM" strings without timezone. Days of week are
Monday-first internally (0 = Monday, same as `date.weekday()`); the
database stores Sunday-first values and is converted at the store
boundary with `to_ui_day` / `to_persistence_day`.
"""

import re

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def time_str_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    match = _TIME_RE.match(time_str.strip()) if isinstance(time_str, str) else None
    if not match:
        raise ValueError(f"Invalid time: {time_str!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 24 or minute > 59 or (hour == 24 and minute):
        raise ValueError(f"Invalid time: {time_str!r}")
    return hour * 60 + minute


def minutes_to_time_str(total_minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM". 1440 renders as "24:00"."""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def normalize_time(time_str: str) -> str:
    """Canonical "HH:MM" form ("9:00" -> "09:00", "09:00:00" -> "09:00")."""
    return minutes_to_time_str(time_str_to_minutes(time_str))


def is_valid_time(time_str: str) -> bool:
    try:
        time_str_to_minutes(time_str)
    except ValueError:
        return False
    return True


def hour_of(time_str: str) -> int:
    """Hour component; suggestion math works at whole-hour granularity."""
    return time_str_to_minutes(time_str) // 60


def format_hour(hour: int) -> str:
    return f"{hour:02d}:00"


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """True iff half-open intervals [start_a, end_a) and [start_b, end_b) intersect."""
    return (
        time_str_to_minutes(start_a) < time_str_to_minutes(end_b)
        and time_str_to_minutes(start_b) < time_str_to_minutes(end_a)
    )


def add_minutes(time_str: str, minutes: int) -> str:
    """Shift a time by `minutes` within the same day ("24:00" is the last valid end)."""
    total = time_str_to_minutes(time_str) + minutes
    if not 0 <= total <= MINUTES_PER_DAY:
        raise ValueError(f"{time_str} shifted by {minutes} min leaves the day")
    return minutes_to_time_str(total)


def to_persistence_day(ui_day: int) -> int:
    """Monday-first (0 = Monday) -> Sunday-first (0 = Sunday)."""
    return (ui_day + 1) % 7


def to_ui_day(persistence_day: int) -> int:
    """Sunday-first (0 = Sunday) -> Monday-first (0 = Monday)."""
    return (persistence_day + 6) % 7
