# backend/scheduler/services/scheduling/conflicts.py
"""
Conflict filter.

Drops candidate slots that overlap an active (non-cancelled) appointment
of the therapist on the same date, and optionally appointments of the
client with any therapist.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable

from .intersection import CandidateSlot
from .time_utils import overlaps


def is_active(appointment) -> bool:
    return appointment.status != "cancelled"


def index_by_date(appointments: Iterable, exclude_id: int | None = None) -> dict[date, list]:
    """Group active appointments by date, skipping `exclude_id`."""
    by_date: dict[date, list] = defaultdict(list)
    for apt in appointments:
        if exclude_id is not None and apt.id == exclude_id:
            continue
        if not is_active(apt):
            continue
        by_date[apt.date].append(apt)
    return by_date


def has_conflict(start_time: str, end_time: str, day_appointments: Iterable) -> bool:
    return any(
        overlaps(start_time, end_time, apt.start_time, apt.end_time)
        for apt in day_appointments
    )


def filter_conflicts(
    candidates: list[CandidateSlot],
    therapist_appointments: Iterable,
    client_appointments: Iterable = (),
    exclude_appointment_id: int | None = None,
) -> list[CandidateSlot]:
    """
    Return candidates that collide with no active appointment.

    Args:
        candidates: Output of compute_candidate_slots
        therapist_appointments: Therapist's appointments in the window
        client_appointments: Client's appointments (any therapist) in the window
        exclude_appointment_id: Appointment being rescheduled, ignored
    """
    therapist_by_date = index_by_date(therapist_appointments, exclude_appointment_id)
    client_by_date = index_by_date(client_appointments, exclude_appointment_id)

    free = []
    for slot in candidates:
        if has_conflict(slot.start_time, slot.end_time, therapist_by_date.get(slot.date, ())):
            continue
        if has_conflict(slot.start_time, slot.end_time, client_by_date.get(slot.date, ())):
            continue
        free.append(slot)
    return free


def find_conflicting_dates(records: list[dict], existing_appointments: Iterable) -> list[date]:
    """Dates of planned records that overlap an existing active appointment."""
    by_date = index_by_date(existing_appointments)
    return [
        record["date"]
        for record in records
        if has_conflict(record["start_time"], record["end_time"], by_date.get(record["date"], ()))
    ]
