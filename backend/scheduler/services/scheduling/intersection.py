# backend/scheduler/services/scheduling/intersection.py
"""
Availability intersection.

Produces whole-hour candidate slots where a client's weekly availability
and a therapist's weekly working hours overlap, for every day of a
bounded window starting at `start_date`.

Contains:
✓ client availability (weekly blocks)
✓ therapist working hours (weekly blocks)

Does NOT contain:
✗ Existing appointments (see conflicts.py)
✗ Scoring (see scorer.py)
"""

from dataclasses import dataclass
from datetime import date, timedelta

from .time_utils import format_hour, hour_of


@dataclass(frozen=True)
class WeeklyBlock:
    """A recurring weekly window. day_of_week is Monday-first (0 = Monday)."""
    owner_id: int
    day_of_week: int
    start_time: str
    end_time: str


@dataclass(frozen=True, order=True)
class CandidateSlot:
    """One-hour candidate [start_hour, start_hour + 1) on a concrete date."""
    date: date
    start_hour: int

    @property
    def day_of_week(self) -> int:
        return self.date.weekday()

    @property
    def start_time(self) -> str:
        return format_hour(self.start_hour)

    @property
    def end_time(self) -> str:
        return format_hour(self.start_hour + 1)


def compute_candidate_slots(
    client_availability: list[WeeklyBlock],
    working_hours: list[WeeklyBlock],
    start_date: date,
    horizon_days: int,
) -> list[CandidateSlot]:
    """
    Intersect client availability with therapist working hours.

    Returns:
        Candidates ordered by (date, hour), deduplicated by (date, hour).
        Empty list if either input is empty.
    """
    if not client_availability or not working_hours:
        return []

    client_by_day = _group_by_day(client_availability)
    therapist_by_day = _group_by_day(working_hours)

    seen: set[tuple[date, int]] = set()
    candidates: list[CandidateSlot] = []

    for offset in range(horizon_days):
        current = start_date + timedelta(days=offset)
        weekday = current.weekday()

        client_slots = client_by_day.get(weekday, [])
        therapist_slots = therapist_by_day.get(weekday, [])

        for client_slot in client_slots:
            for therapist_slot in therapist_slots:
                overlap_start = max(hour_of(client_slot.start_time), hour_of(therapist_slot.start_time))
                overlap_end = min(hour_of(client_slot.end_time), hour_of(therapist_slot.end_time))

                for hour in range(overlap_start, overlap_end):
                    key = (current, hour)
                    if key in seen:
                        continue
                    seen.add(key)
                    candidates.append(CandidateSlot(date=current, start_hour=hour))

    candidates.sort()
    return candidates


def _group_by_day(blocks: list[WeeklyBlock]) -> dict[int, list[WeeklyBlock]]:
    grouped: dict[int, list[WeeklyBlock]] = {}
    for block in blocks:
        grouped.setdefault(block.day_of_week, []).append(block)
    return grouped
