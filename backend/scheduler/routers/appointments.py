# backend/scheduler/routers/appointments.py
"""
Appointments API.

Plain reads, series-aware creation, slot suggestions and the
scope-limited series endpoints. Engine errors are mapped to HTTP codes
by the SchedulingError handler registered in main.py.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_engine
from ..models.generated import Appointments as DBAppointments
from ..schemas.appointments import (
    AnchorBookingRequest,
    AppointmentPatch,
    AppointmentRead,
    FrequencyChange,
    RankedSlotRead,
    SeriesCreateResponse,
    SuggestRequest,
)
from ..services.scheduling.engine import SchedulingEngine

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("/", response_model=list[AppointmentRead])
def list_appointments(
    therapist_id: int | None = None,
    client_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBAppointments)
    if therapist_id is not None:
        query = query.filter(DBAppointments.therapist_id == therapist_id)
    if client_id is not None:
        query = query.filter(DBAppointments.client_id == client_id)
    if start_date is not None:
        query = query.filter(DBAppointments.date >= start_date)
    if end_date is not None:
        query = query.filter(DBAppointments.date <= end_date)
    return query.order_by(DBAppointments.date, DBAppointments.start_time).all()


@router.get("/{id}", response_model=AppointmentRead)
def get_appointment(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAppointments, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=SeriesCreateResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AnchorBookingRequest,
    engine: SchedulingEngine = Depends(get_engine),
):
    """Create a one-off appointment or a whole weekly/biweekly series."""
    warnings = engine.series_warnings(data)
    created = engine.create_recurring_appointment(data)
    return SeriesCreateResponse(
        appointments=[AppointmentRead.model_validate(a) for a in created],
        warnings=warnings,
    )


@router.post("/suggest", response_model=list[RankedSlotRead])
def suggest_slots(
    data: SuggestRequest,
    engine: SchedulingEngine = Depends(get_engine),
):
    ranked = engine.suggest_slots(
        data.client_id,
        data.therapist_id,
        data.exclude_appointment_id,
    )
    return [
        RankedSlotRead(
            date=r.date,
            day_of_week=r.slot.day_of_week,
            start_time=r.start_time,
            end_time=r.end_time,
            score=r.score,
            reasons=list(r.reasons),
            is_optimal=r.is_optimal,
        )
        for r in ranked
    ]


@router.patch("/{id}/series", response_model=list[AppointmentRead])
def update_appointment_series(
    id: int,
    data: AppointmentPatch,
    scope: str = Query(...),
    engine: SchedulingEngine = Depends(get_engine),
):
    return engine.update_appointment_series(id, scope, data)


@router.delete("/{id}/series", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment_series(
    id: int,
    scope: str = Query(...),
    engine: SchedulingEngine = Depends(get_engine),
):
    engine.delete_appointment_series(id, scope)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{id}/frequency", response_model=list[AppointmentRead])
def change_series_frequency(
    id: int,
    data: FrequencyChange,
    engine: SchedulingEngine = Depends(get_engine),
):
    return engine.change_series_frequency(id, data.frequency)
