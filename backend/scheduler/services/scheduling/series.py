# backend/scheduler/services/scheduling/series.py
"""
Recurring series generator.

Expands one anchor booking into concrete dated appointment records.
Every occurrence is materialized up front (no recurrence rule is kept);
scope-limited edits later work on date ranges of these rows.
"""

import uuid
from datetime import timedelta
from typing import Callable

from ...schemas.appointments import AnchorBookingRequest
from .errors import ValidationError
from .intersection import WeeklyBlock
from .time_utils import MINUTES_PER_DAY, minutes_to_time_str, time_str_to_minutes

FREQUENCIES = ("puntual", "semanal", "quincenal")
RECURRING_FREQUENCIES = ("semanal", "quincenal")
SCOPES = ("this_only", "this_and_future")

INTERVAL_DAYS = {
    "semanal": 7,
    "quincenal": 14,
}

OCCURRENCE_COUNTS = {
    "semanal": {"1 mes": 4, "6 meses": 26, "1 año": 52},
    "quincenal": {"1 mes": 2, "6 meses": 13, "1 año": 26},
}

DAY_NAMES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábados", "domingos"]


def validate_scope(scope) -> str:
    if scope not in SCOPES:
        raise ValidationError(
            f"Invalid scope {scope!r}. Must be 'this_only' or 'this_and_future'"
        )
    return scope


def validate_recurring_frequency(frequency) -> str:
    if frequency not in RECURRING_FREQUENCIES:
        raise ValidationError(
            f"Invalid frequency {frequency!r}. Must be 'semanal' or 'quincenal'"
        )
    return frequency


def occurrence_count(frequency: str, horizon_period: str) -> int:
    if frequency == "puntual":
        return 1
    try:
        return OCCURRENCE_COUNTS[frequency][horizon_period]
    except KeyError:
        raise ValidationError(
            f"Unsupported frequency/horizon: {frequency!r}, {horizon_period!r}"
        ) from None


def compute_end_time(start_time: str, duration_minutes: int) -> str:
    """start + duration; an appointment may not run past midnight."""
    end = time_str_to_minutes(start_time) + duration_minutes
    if end > MINUTES_PER_DAY:
        raise ValidationError(
            f"Appointment starting at {start_time} for {duration_minutes} min runs past midnight"
        )
    return minutes_to_time_str(end)


def generate_series(
    request: AnchorBookingRequest,
    series_id_factory: Callable[[], str] | None = None,
) -> list[dict]:
    """
    Build the records to persist for a booking request.

    Returns:
        Records ordered by date. One-off bookings yield one record without
        series_id; recurring ones share a fresh series_id and only the
        first occurrence keeps optimization_score.
    """
    end_time = compute_end_time(request.start_time, request.duration_minutes)

    base = {
        "client_id": request.client_id,
        "therapist_id": request.therapist_id,
        "start_time": request.start_time,
        "end_time": end_time,
        "duration_minutes": request.duration_minutes,
        "frequency": request.frequency,
        "status": request.status,
        "notes": request.notes,
        "pending_reason": request.pending_reason,
    }

    if request.frequency == "puntual":
        return [{
            **base,
            "date": request.date,
            "series_id": None,
            "optimization_score": request.optimization_score,
        }]

    series_id = (series_id_factory or _new_series_id)()
    count = occurrence_count(request.frequency, request.horizon_period)
    step = timedelta(days=INTERVAL_DAYS[request.frequency])

    return [
        {
            **base,
            "date": request.date + i * step,
            "series_id": series_id,
            "optimization_score": request.optimization_score if i == 0 else 0,
        }
        for i in range(count)
    ]


def series_warnings(request: AnchorBookingRequest, working_hours: list[WeeklyBlock]) -> list[str]:
    """
    Advisory checks of the anchor against the therapist's weekly hours.

    Every occurrence shares the anchor's weekday and time, so checking the
    anchor covers the whole series.
    """
    weekday = request.date.weekday()
    day_blocks = [b for b in working_hours if b.day_of_week == weekday]

    if not day_blocks:
        return [f"El terapeuta no trabaja los {DAY_NAMES[weekday]}"]

    start = time_str_to_minutes(request.start_time)
    within = any(
        time_str_to_minutes(b.start_time) <= start < time_str_to_minutes(b.end_time)
        for b in day_blocks
    )
    if not within:
        return ["El horario está fuera del horario laboral del terapeuta"]
    return []


def _new_series_id() -> str:
    return str(uuid.uuid4())
