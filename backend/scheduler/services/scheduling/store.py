# backend/scheduler/services/scheduling/store.py
"""
Record store over SQLAlchemy.

The engine talks to persistence only through this class. Writes flush
but never commit on their own: callers group them in `transaction()`,
which commits once at the outermost level and rolls back on any error.

Day-of-week conversion (Sunday-first in the database, Monday-first
everywhere else) happens here and nowhere else.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Callable, Iterable, TypeVar

from sqlalchemy.orm import Session

from ...models.generated import (
    Appointments,
    ClientAvailability,
    TherapistWorkingHours,
)
from .errors import NotFoundError, PartialBatchFailure, SchedulingError
from .intersection import WeeklyBlock
from .time_utils import to_persistence_day, to_ui_day

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

APPOINTMENT_FIELDS = {
    "therapist_id", "client_id", "date", "start_time", "end_time",
    "duration_minutes", "status", "frequency", "series_id", "notes",
    "pending_reason", "optimization_score",
}


def _now_str() -> str:
    return datetime.now(timezone.utc).isoformat()


class AppointmentStore:
    """CRUD plus range queries for appointments and weekly blocks."""

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    # ── Unit of work ─────────────────────────────────────────────────────

    @contextmanager
    def transaction(self):
        """Commit once at the outermost level; roll back on any error."""
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                self.db.commit()
        except Exception:
            if self._depth == 1:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1

    def run_batch(
        self,
        operation: str,
        items: list[T],
        apply: Callable[[T], R],
    ) -> list[R]:
        """
        Apply `apply` to each item in order inside one transaction.

        Raises:
            PartialBatchFailure: a record failed; `completed` records had
                been applied and the whole transaction was rolled back.
        """
        results: list[R] = []
        try:
            with self.transaction():
                for item in items:
                    results.append(apply(item))
        except SchedulingError:
            raise
        except Exception as exc:
            logger.warning(
                f"{operation}: batch failed after {len(results)}/{len(items)} records, rolled back"
            )
            raise PartialBatchFailure(
                operation=operation,
                completed=len(results),
                total=len(items),
                cause=exc,
                rolled_back=True,
            ) from exc
        return results

    # ── Appointments: read ───────────────────────────────────────────────

    def find_appointment_by_id(self, appointment_id: int) -> Appointments | None:
        return self.db.get(Appointments, appointment_id)

    def find_appointments_by_therapist(
        self,
        therapist_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Appointments]:
        """Appointments of a therapist with date_from <= date < date_to."""
        query = self.db.query(Appointments).filter(Appointments.therapist_id == therapist_id)
        query = self._date_range(query, date_from, date_to)
        return query.order_by(Appointments.date, Appointments.start_time).all()

    def find_appointments_by_client(
        self,
        client_id: int,
        therapist_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Appointments]:
        query = self.db.query(Appointments).filter(Appointments.client_id == client_id)
        if therapist_id is not None:
            query = query.filter(Appointments.therapist_id == therapist_id)
        query = self._date_range(query, date_from, date_to)
        return query.order_by(Appointments.date, Appointments.start_time).all()

    def find_appointments_by_series(self, series_id: str, date_from: date) -> list[Appointments]:
        """Occurrences of a series on or after date_from, ascending by date."""
        return (
            self.db.query(Appointments)
            .filter(
                Appointments.series_id == series_id,
                Appointments.date >= date_from,
            )
            .order_by(Appointments.date, Appointments.start_time)
            .all()
        )

    # ── Appointments: write ──────────────────────────────────────────────

    def insert_appointment(self, record: dict) -> Appointments:
        obj = Appointments(**{k: v for k, v in record.items() if k in APPOINTMENT_FIELDS})
        self.db.add(obj)
        self.db.flush()
        return obj

    def update_appointment(self, appointment_id: int, patch: dict) -> Appointments:
        obj = self.find_appointment_by_id(appointment_id)
        if not obj:
            raise NotFoundError("Appointment", appointment_id)

        for field, value in patch.items():
            if field in APPOINTMENT_FIELDS:
                setattr(obj, field, value)
        obj.updated_at = _now_str()

        self.db.flush()
        return obj

    def update_many_by_series(self, series_id: str, date_from: date, patch: dict) -> list[Appointments]:
        return [
            self.update_appointment(obj.id, patch)
            for obj in self.find_appointments_by_series(series_id, date_from)
        ]

    def delete_appointment(self, appointment_id: int) -> None:
        obj = self.find_appointment_by_id(appointment_id)
        if not obj:
            raise NotFoundError("Appointment", appointment_id)
        self.db.delete(obj)
        self.db.flush()

    def delete_many_by_series(self, series_id: str, date_from: date) -> int:
        """Delete occurrences on or after date_from, soonest first."""
        occurrences = self.find_appointments_by_series(series_id, date_from)
        for obj in occurrences:
            self.delete_appointment(obj.id)
        return len(occurrences)

    def link_unlinked_occurrences(self, anchor: Appointments, series_id: str) -> int:
        """
        Stamp series_id on unlinked rows that look like anchor's series:
        same client, therapist, frequency and times, on or after anchor's date.

        Returns:
            Number of rows updated
        """
        updated = (
            self.db.query(Appointments)
            .filter(
                Appointments.client_id == anchor.client_id,
                Appointments.therapist_id == anchor.therapist_id,
                Appointments.frequency == anchor.frequency,
                Appointments.start_time == anchor.start_time,
                Appointments.end_time == anchor.end_time,
                Appointments.date >= anchor.date,
                Appointments.series_id.is_(None),
            )
            .update(
                {Appointments.series_id: series_id, Appointments.updated_at: _now_str()},
                synchronize_session="fetch",
            )
        )
        self.db.flush()
        return updated

    # ── Weekly blocks ────────────────────────────────────────────────────

    def find_availability(self, client_id: int) -> list[WeeklyBlock]:
        rows = (
            self.db.query(ClientAvailability)
            .filter(ClientAvailability.client_id == client_id)
            .order_by(ClientAvailability.day_of_week, ClientAvailability.start_time)
            .all()
        )
        return self._to_blocks(rows, "client_id")

    def find_working_hours(self, therapist_id: int) -> list[WeeklyBlock]:
        rows = (
            self.db.query(TherapistWorkingHours)
            .filter(TherapistWorkingHours.therapist_id == therapist_id)
            .order_by(TherapistWorkingHours.day_of_week, TherapistWorkingHours.start_time)
            .all()
        )
        return self._to_blocks(rows, "therapist_id")

    def replace_availability(self, client_id: int, blocks: Iterable) -> list[WeeklyBlock]:
        """Delete all availability of the client, then insert `blocks`."""
        with self.transaction():
            self.db.query(ClientAvailability).filter(
                ClientAvailability.client_id == client_id
            ).delete(synchronize_session=False)
            for block in blocks:
                self.db.add(ClientAvailability(
                    client_id=client_id,
                    day_of_week=to_persistence_day(block.day_of_week),
                    start_time=block.start_time,
                    end_time=block.end_time,
                ))
            self.db.flush()
        logger.info(f"Availability replaced for client {client_id}")
        return self.find_availability(client_id)

    def replace_working_hours(self, therapist_id: int, blocks: Iterable) -> list[WeeklyBlock]:
        """Delete all working hours of the therapist, then insert `blocks`."""
        with self.transaction():
            self.db.query(TherapistWorkingHours).filter(
                TherapistWorkingHours.therapist_id == therapist_id
            ).delete(synchronize_session=False)
            for block in blocks:
                self.db.add(TherapistWorkingHours(
                    therapist_id=therapist_id,
                    day_of_week=to_persistence_day(block.day_of_week),
                    start_time=block.start_time,
                    end_time=block.end_time,
                ))
            self.db.flush()
        logger.info(f"Working hours replaced for therapist {therapist_id}")
        return self.find_working_hours(therapist_id)

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _date_range(query, date_from: date | None, date_to: date | None):
        if date_from is not None:
            query = query.filter(Appointments.date >= date_from)
        if date_to is not None:
            query = query.filter(Appointments.date < date_to)
        return query

    @staticmethod
    def _to_blocks(rows, owner_field: str) -> list[WeeklyBlock]:
        blocks = [
            WeeklyBlock(
                owner_id=getattr(row, owner_field),
                day_of_week=to_ui_day(row.day_of_week),
                start_time=row.start_time,
                end_time=row.end_time,
            )
            for row in rows
        ]
        return sorted(blocks, key=lambda b: (b.day_of_week, b.start_time))
