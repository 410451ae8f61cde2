# backend/scheduler/services/scheduling/mutations.py
"""
Series mutation engine.

Scope-limited operations on materialized series:

  this_only        → the target row only; edits detach it from the series
  this_and_future  → every row of the series with date >= target.date

Rows of a batch are always processed in ascending date order inside one
store transaction (see AppointmentStore.run_batch).
"""

import logging
import uuid
from datetime import timedelta

from pydantic import ValidationError as PydanticValidationError

from ...schemas.appointments import AppointmentPatch
from ..events import emit_event
from .errors import NotFoundError, UnlinkedSeriesError, ValidationError
from .series import (
    INTERVAL_DAYS,
    RECURRING_FREQUENCIES,
    compute_end_time,
    validate_recurring_frequency,
    validate_scope,
)
from .store import AppointmentStore
from .time_utils import add_minutes, time_str_to_minutes

logger = logging.getLogger(__name__)


class SeriesMutationEngine:
    def __init__(self, store: AppointmentStore, redis=None):
        self.store = store
        self.redis = redis

    # ── Lazy linking ─────────────────────────────────────────────────────

    def ensure_series_id(self, appointment) -> str | None:
        """
        Return the series id of `appointment`, linking legacy rows if needed.

        A recurring appointment without series_id gets a fresh id, stamped
        on every unlinked row matching its client, therapist, frequency and
        times from its date on. Returns None when the appointment is
        one-off or nothing could be linked.
        """
        if appointment.series_id:
            return appointment.series_id
        if appointment.frequency not in RECURRING_FREQUENCIES:
            return None

        series_id = str(uuid.uuid4())
        with self.store.transaction():
            linked = self.store.link_unlinked_occurrences(appointment, series_id)
        if linked == 0:
            return None

        appointment.series_id = series_id
        logger.info(
            f"Linked {linked} unlinked appointments into series {series_id} "
            f"(anchor appointment {appointment.id})"
        )
        return series_id

    # ── Edit ─────────────────────────────────────────────────────────────

    def update_appointment_series(self, appointment_id: int, scope: str, patch) -> list:
        scope = validate_scope(scope)
        fields = _parse_patch(patch)
        target = self._get(appointment_id)

        if target.status == "cancelled" and fields.get("status") not in (None, "cancelled"):
            raise ValidationError(f"Appointment {appointment_id} is cancelled and cannot be reactivated")

        if scope == "this_only":
            changes = _resolve_changes(target, target, fields)
            changes.update(series_id=None, frequency="puntual")
            with self.store.transaction():
                updated = [self.store.update_appointment(target.id, changes)]
            logger.info(f"Appointment {target.id} edited and detached from its series")
            self._emit("appointment_series_updated", updated, scope)
            return updated

        with self.store.transaction():
            series_id = self.ensure_series_id(target)

            if not series_id:
                changes = _resolve_changes(target, target, fields)
                updated = [self.store.update_appointment(target.id, changes)]
            else:
                occurrences = self.store.find_appointments_by_series(series_id, target.date)
                plan = [(occ.id, _resolve_changes(target, occ, fields)) for occ in occurrences]
                updated = self.store.run_batch(
                    "update_appointment_series",
                    plan,
                    lambda step: self.store.update_appointment(*step),
                )

        logger.info(
            f"Series edit ({scope}) from appointment {target.id}: {len(updated)} appointments updated"
        )
        self._emit("appointment_series_updated", updated, scope)
        return updated

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_appointment_series(self, appointment_id: int, scope: str) -> int:
        """Returns the number of deleted appointments."""
        scope = validate_scope(scope)
        target = self._get(appointment_id)
        series_id = target.series_id
        target_date = target.date

        if scope == "this_only" or not series_id:
            with self.store.transaction():
                self.store.delete_appointment(target.id)
            deleted = 1
        else:
            occurrences = self.store.find_appointments_by_series(series_id, target_date)
            self.store.run_batch(
                "delete_appointment_series",
                [occ.id for occ in occurrences],
                self.store.delete_appointment,
            )
            deleted = len(occurrences)

        logger.info(f"Series delete ({scope}) from appointment {appointment_id}: {deleted} deleted")
        emit_event(self.redis, "appointment_series_deleted", {
            "appointment_id": appointment_id,
            "series_id": series_id,
            "scope": scope,
            "date_from": target_date.isoformat(),
            "deleted": deleted,
        })
        return deleted

    # ── Frequency change ─────────────────────────────────────────────────

    def change_series_frequency(self, appointment_id: int, new_frequency: str) -> list:
        """
        Re-date every occurrence from the target on with the new interval.

        The target becomes the anchor; occurrence i (ascending by date) is
        moved to anchor + i * interval, discarding its previous date.
        """
        new_frequency = validate_recurring_frequency(new_frequency)
        target = self._get(appointment_id)

        with self.store.transaction():
            series_id = self.ensure_series_id(target)
            if not series_id:
                logger.warning(f"Frequency change rejected: appointment {appointment_id} has no series")
                raise UnlinkedSeriesError(appointment_id)

            anchor = target.date
            step = timedelta(days=INTERVAL_DAYS[new_frequency])
            occurrences = self.store.find_appointments_by_series(series_id, anchor)
            plan = [
                (occ.id, {"date": anchor + i * step, "frequency": new_frequency})
                for i, occ in enumerate(occurrences)
            ]
            updated = self.store.run_batch(
                "change_series_frequency",
                plan,
                lambda step_: self.store.update_appointment(*step_),
            )

        logger.info(
            f"Series {series_id} switched to {new_frequency} from {anchor.isoformat()}: "
            f"{len(updated)} appointments re-dated"
        )
        self._emit("appointment_series_frequency_changed", updated, new_frequency)
        return updated

    # ── Helpers ──────────────────────────────────────────────────────────

    def _get(self, appointment_id: int):
        obj = self.store.find_appointment_by_id(appointment_id)
        if not obj:
            raise NotFoundError("Appointment", appointment_id)
        return obj

    def _emit(self, event_type: str, appointments: list, detail: str) -> None:
        emit_event(self.redis, event_type, {
            "appointment_ids": [a.id for a in appointments],
            "detail": detail,
        })


def _parse_patch(patch) -> dict:
    if isinstance(patch, AppointmentPatch):
        model = patch
    else:
        try:
            model = AppointmentPatch.model_validate(patch or {})
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid appointment patch: {exc}") from exc
    return model.model_dump(exclude_unset=True)


def _resolve_changes(target, occurrence, fields: dict) -> dict:
    """
    Changes for one occurrence of an edit made on `target`.

    date / start_time / end_time move each occurrence by the same delta
    the edit applies to the target; other fields are copied. For the
    target itself this is the literal patch.
    """
    changes = {
        k: v for k, v in fields.items()
        if k not in ("date", "start_time", "end_time")
    }
    if occurrence.status == "cancelled":
        changes.pop("status", None)

    if fields.get("date") is not None:
        changes["date"] = occurrence.date + (fields["date"] - target.date)

    start = occurrence.start_time
    if fields.get("start_time") is not None:
        delta = time_str_to_minutes(fields["start_time"]) - time_str_to_minutes(target.start_time)
        start = _shift(occurrence, occurrence.start_time, delta)
        changes["start_time"] = start

    if fields.get("end_time") is not None:
        delta = time_str_to_minutes(fields["end_time"]) - time_str_to_minutes(target.end_time)
        end = _shift(occurrence, occurrence.end_time, delta)
        changes["end_time"] = end
        if "duration_minutes" not in fields:
            length = time_str_to_minutes(end) - time_str_to_minutes(start)
            if length > 0:
                changes["duration_minutes"] = length
    elif "start_time" in changes or "duration_minutes" in fields:
        duration = fields.get("duration_minutes") or occurrence.duration_minutes
        changes["end_time"] = compute_end_time(start, duration)

    end = changes.get("end_time", occurrence.end_time)
    if time_str_to_minutes(start) >= time_str_to_minutes(end):
        raise ValidationError(
            f"Appointment {occurrence.id}: start {start} must be before end {end}"
        )
    return changes


def _shift(occurrence, time_str: str, delta: int) -> str:
    try:
        return add_minutes(time_str, delta)
    except ValueError:
        raise ValidationError(
            f"Appointment {occurrence.id}: moving {time_str} by {delta} min crosses midnight"
        ) from None
