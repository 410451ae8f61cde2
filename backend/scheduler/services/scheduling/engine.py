# backend/scheduler/services/scheduling/engine.py
"""
Scheduling engine facade.

Caller-facing operations:
- suggest_slots:                 intersection → conflicts → scorer
- create_recurring_appointment:  series generation + conflict check + insert
- update_appointment_series / delete_appointment_series /
  change_series_frequency:       delegated to SeriesMutationEngine
- weekly_stats:                  therapist occupancy for a week
"""

import logging
import math
from datetime import date, timedelta

from pydantic import ValidationError as PydanticValidationError
from redis import Redis

from ...schemas.appointments import AnchorBookingRequest
from ..events import emit_event
from .config import SchedulingConfig, get_scheduling_config
from .conflicts import filter_conflicts, find_conflicting_dates
from .errors import ConflictError, ValidationError
from .intersection import compute_candidate_slots
from .locks import DEFAULT_TTL_SECONDS, SlotLock
from .mutations import SeriesMutationEngine
from .scorer import RankedSlot, rank_slots
from .series import generate_series, series_warnings
from .stats import WeeklyStats, calculate_weekly_stats, week_bounds
from .store import AppointmentStore
from .time_utils import hour_of, time_str_to_minutes

logger = logging.getLogger(__name__)


class SchedulingEngine:
    def __init__(
        self,
        store: AppointmentStore,
        config: SchedulingConfig | None = None,
        redis: Redis | None = None,
        lock_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self.store = store
        self.config = config or get_scheduling_config()
        self.redis = redis
        self.lock = SlotLock(redis, lock_ttl_seconds)
        self.mutations = SeriesMutationEngine(store, redis)

    # ── Suggestions ──────────────────────────────────────────────────────

    def suggest_slots(
        self,
        client_id: int,
        therapist_id: int,
        exclude_appointment_id: int | None = None,
        today: date | None = None,
    ) -> list[RankedSlot]:
        """
        Ranked free one-hour slots for a client/therapist pair.

        Window: [today, today + horizon_days). `exclude_appointment_id` is
        the appointment being rescheduled; it neither blocks nor groups.
        """
        today = today or date.today()
        window_end = today + timedelta(days=self.config.horizon_days)

        availability = self.store.find_availability(client_id)
        working_hours = self.store.find_working_hours(therapist_id)
        candidates = compute_candidate_slots(
            availability, working_hours, today, self.config.horizon_days
        )
        if not candidates:
            logger.info(
                f"No overlapping hours for client {client_id} / therapist {therapist_id}"
            )
            return []

        therapist_appointments = self.store.find_appointments_by_therapist(
            therapist_id, today, window_end
        )
        client_appointments = self.store.find_appointments_by_client(
            client_id, date_from=today, date_to=window_end
        )
        free = filter_conflicts(
            candidates,
            therapist_appointments,
            client_appointments,
            exclude_appointment_id,
        )

        history = self.store.find_appointments_by_client(
            client_id, therapist_id=therapist_id, date_to=window_end
        )
        ranked = rank_slots(
            free,
            today,
            therapist_appointments,
            history,
            self.config,
            exclude_appointment_id=exclude_appointment_id,
        )

        logger.info(
            f"Suggested {len(ranked)} slots for client {client_id} / therapist {therapist_id} "
            f"({len(candidates)} candidates, {len(free)} free)"
        )
        return ranked

    # ── Creation ─────────────────────────────────────────────────────────

    def series_warnings(self, request) -> list[str]:
        request = _parse_request(request)
        return series_warnings(request, self.store.find_working_hours(request.therapist_id))

    def create_recurring_appointment(self, request) -> list:
        """
        Materialize and persist every occurrence of a booking request.

        Raises:
            ValidationError: malformed request
            ConflictError: an occurrence overlaps an active appointment of
                the therapist, or its slot is being booked concurrently
            PartialBatchFailure: an insert failed (batch rolled back)
        """
        request = _parse_request(request)
        records = generate_series(request)
        slots = [(r["date"], hour) for r in records for hour in _spanned_hours(r)]

        with self.lock.hold(request.therapist_id, slots):
            existing = self.store.find_appointments_by_therapist(
                request.therapist_id,
                records[0]["date"],
                records[-1]["date"] + timedelta(days=1),
            )
            conflicting = find_conflicting_dates(records, existing)
            if conflicting:
                logger.warning(
                    f"Booking rejected for therapist {request.therapist_id}: "
                    f"{len(conflicting)} conflicting dates"
                )
                raise ConflictError(
                    f"Therapist {request.therapist_id} is already booked at "
                    f"{request.start_time} on {len(conflicting)} date(s)",
                    dates=conflicting,
                )

            created = self.store.run_batch(
                "create_recurring_appointment",
                records,
                self.store.insert_appointment,
            )

        logger.info(
            f"Created {len(created)} appointments ({request.frequency}) for client "
            f"{request.client_id} with therapist {request.therapist_id}, "
            f"series={records[0]['series_id']}"
        )
        emit_event(self.redis, "appointment_created", {
            "appointment_ids": [a.id for a in created],
            "series_id": records[0]["series_id"],
        })
        return created

    # ── Series mutations ─────────────────────────────────────────────────

    def update_appointment_series(self, appointment_id: int, scope: str, patch) -> list:
        return self.mutations.update_appointment_series(appointment_id, scope, patch)

    def delete_appointment_series(self, appointment_id: int, scope: str) -> int:
        return self.mutations.delete_appointment_series(appointment_id, scope)

    def change_series_frequency(self, appointment_id: int, new_frequency: str) -> list:
        return self.mutations.change_series_frequency(appointment_id, new_frequency)

    def ensure_series_id(self, appointment) -> str | None:
        return self.mutations.ensure_series_id(appointment)

    # ── Stats ────────────────────────────────────────────────────────────

    def weekly_stats(self, therapist_id: int, reference_date: date | None = None) -> WeeklyStats:
        reference_date = reference_date or date.today()
        week_start, week_end = week_bounds(reference_date)
        appointments = self.store.find_appointments_by_therapist(
            therapist_id, week_start, week_end + timedelta(days=1)
        )
        return calculate_weekly_stats(
            appointments, self.store.find_working_hours(therapist_id), reference_date
        )


def _spanned_hours(record: dict) -> range:
    """Every clock hour an occurrence touches, e.g. 10:30-12:00 -> 10, 11."""
    end_minutes = time_str_to_minutes(record["end_time"])
    return range(hour_of(record["start_time"]), math.ceil(end_minutes / 60))


def _parse_request(request) -> AnchorBookingRequest:
    if isinstance(request, AnchorBookingRequest):
        return request
    try:
        return AnchorBookingRequest.model_validate(request)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid booking request: {exc}") from exc
