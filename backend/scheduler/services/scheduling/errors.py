# backend/scheduler/services/scheduling/errors.py
"""
Error taxonomy of the scheduling engine.

Every error carries a `kind` and a `status_code` hint. The hint is only
read by the HTTP adapters; the engine never maps errors itself.
"""

from datetime import date


class SchedulingError(Exception):
    kind = "scheduling"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(SchedulingError):
    """Malformed scope/frequency literal or missing field. Nothing changed."""
    kind = "validation"
    status_code = 400


class NotFoundError(SchedulingError):
    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class UnlinkedSeriesError(SchedulingError):
    """Appointment has no series and lazy linking found nothing to link."""
    kind = "unlinked_series"
    status_code = 404

    def __init__(self, appointment_id):
        super().__init__(f"Appointment {appointment_id} is not part of a series")
        self.appointment_id = appointment_id


class ConflictError(SchedulingError):
    kind = "conflict"
    status_code = 409

    def __init__(self, message: str, dates: list[date] | None = None):
        super().__init__(message)
        self.dates = dates or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["dates"] = [d.isoformat() for d in self.dates]
        return data


class PartialBatchFailure(SchedulingError):
    """
    A record in a multi-record batch failed.

    `completed` records were applied before the failure. When the store
    runs the batch in a transaction, `rolled_back` is True and none of
    them persisted.
    """
    kind = "partial_batch"
    status_code = 500

    def __init__(
        self,
        operation: str,
        completed: int,
        total: int,
        cause: Exception,
        rolled_back: bool,
    ):
        super().__init__(
            f"{operation} failed after {completed}/{total} records: {cause}"
        )
        self.operation = operation
        self.completed = completed
        self.total = total
        self.cause = cause
        self.rolled_back = rolled_back

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            operation=self.operation,
            completed=self.completed,
            total=self.total,
            rolled_back=self.rolled_back,
        )
        return data
