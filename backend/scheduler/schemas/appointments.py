# backend/scheduler/schemas/appointments.py

import datetime
from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.scheduling.time_utils import normalize_time

Frequency = Literal["puntual", "semanal", "quincenal"]
HorizonPeriod = Literal["1 mes", "6 meses", "1 año"]
Status = Literal["pending", "confirmed", "cancelled"]

NULLABLE_PATCH_FIELDS = {"notes", "pending_reason"}


class AnchorBookingRequest(BaseModel):
    """One booking plus recurrence; expanded into concrete occurrences."""
    client_id: int
    therapist_id: int
    date: date
    start_time: str
    duration_minutes: int = Field(default=60, ge=15, le=240)
    frequency: Frequency = "puntual"
    horizon_period: HorizonPeriod = "6 meses"
    status: Literal["pending", "confirmed"] = "pending"
    notes: Optional[str] = None
    pending_reason: Optional[str] = None
    optimization_score: Optional[int] = None

    @field_validator("start_time")
    @classmethod
    def _normalize_start(cls, value: str) -> str:
        return normalize_time(value)

    model_config = {"from_attributes": True}


class AppointmentPatch(BaseModel):
    """Editable fields. Unknown keys (series_id included) are ignored."""
    therapist_id: Optional[int] = None
    date: Optional[datetime.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=15, le=240)
    status: Optional[Status] = None
    notes: Optional[str] = None
    pending_reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_times(cls, value: Optional[str]) -> Optional[str]:
        return normalize_time(value) if value is not None else None

    @model_validator(mode="after")
    def _no_null_required(self):
        nulled = sorted(
            name for name in self.model_fields_set - NULLABLE_PATCH_FIELDS
            if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class AppointmentRead(BaseModel):
    id: int
    therapist_id: int
    client_id: int
    date: date
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    frequency: str
    series_id: Optional[str] = None
    notes: Optional[str] = None
    pending_reason: Optional[str] = None
    optimization_score: Optional[int] = None

    model_config = {"from_attributes": True}


class SeriesCreateResponse(BaseModel):
    appointments: list[AppointmentRead]
    warnings: list[str] = []


class FrequencyChange(BaseModel):
    # Validated by the engine so a bad literal maps to 400, not 422
    frequency: str


class SuggestRequest(BaseModel):
    client_id: int
    therapist_id: int
    exclude_appointment_id: Optional[int] = None


class RankedSlotRead(BaseModel):
    date: date
    day_of_week: int = Field(description="Monday-first: 0 = Monday")
    start_time: str
    end_time: str
    score: int
    reasons: list[str]
    is_optimal: bool
