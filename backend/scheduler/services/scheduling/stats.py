# backend/scheduler/services/scheduling/stats.py
"""
Weekly occupancy of a therapist.

occupancy    = booked minutes in the Monday..Sunday week / weekly working minutes
availability = 100 - occupancy
Both are whole percentages clamped to [0, 100].
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from .conflicts import is_active
from .intersection import WeeklyBlock
from .time_utils import time_str_to_minutes

DEFAULT_DURATION_MIN = 60


@dataclass(frozen=True)
class WeeklyStats:
    week_start: date
    availability: int
    occupancy: int


def week_bounds(reference_date: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing reference_date."""
    start = reference_date - timedelta(days=reference_date.weekday())
    return start, start + timedelta(days=6)


def calculate_weekly_stats(
    appointments: Iterable,
    working_hours: list[WeeklyBlock],
    reference_date: date,
) -> WeeklyStats:
    week_start, week_end = week_bounds(reference_date)

    available = 0
    for block in working_hours:
        start = time_str_to_minutes(block.start_time)
        end = time_str_to_minutes(block.end_time)
        if end > start:
            available += end - start

    if available <= 0:
        return WeeklyStats(week_start=week_start, availability=0, occupancy=0)

    booked = sum(
        _duration(apt)
        for apt in appointments
        if is_active(apt) and week_start <= apt.date <= week_end
    )

    occupancy = min(100, max(0, round(booked / available * 100)))
    return WeeklyStats(
        week_start=week_start,
        availability=max(0, min(100, 100 - occupancy)),
        occupancy=occupancy,
    )


def _duration(apt) -> int:
    if apt.duration_minutes and apt.duration_minutes > 0:
        return apt.duration_minutes
    try:
        minutes = time_str_to_minutes(apt.end_time) - time_str_to_minutes(apt.start_time)
    except (TypeError, ValueError):
        return DEFAULT_DURATION_MIN
    return minutes if minutes > 0 else DEFAULT_DURATION_MIN
