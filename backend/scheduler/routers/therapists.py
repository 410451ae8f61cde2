# backend/scheduler/routers/therapists.py
# PATCH = ALLOWED, DELETE = soft-delete (is_active)
# Domain relation: therapists -> weekly working hours (replaced wholesale)

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_engine, get_store
from ..models.generated import Therapists as DBTherapists
from ..schemas.schedule import WeeklyBlockIn, WeeklyBlockRead
from ..schemas.therapists import (
    TherapistCreate,
    TherapistUpdate,
    TherapistRead,
    TherapistStatsRead,
)
from ..services.scheduling.engine import SchedulingEngine
from ..services.scheduling.store import AppointmentStore

router = APIRouter(prefix="/therapists", tags=["therapists"])


def _get_or_404(db: Session, id: int) -> DBTherapists:
    obj = db.get(DBTherapists, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


# ---------------------------------------------------------------------
# Base CRUD
# ---------------------------------------------------------------------

@router.get("/", response_model=list[TherapistRead])
def list_therapists(db: Session = Depends(get_db)):
    return (
        db.query(DBTherapists)
        .filter(DBTherapists.is_active == 1)
        .order_by(DBTherapists.name)
        .all()
    )


@router.get("/{id}", response_model=TherapistRead)
def get_therapist(id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, id)


@router.post("/", response_model=TherapistRead, status_code=status.HTTP_201_CREATED)
def create_therapist(
    data: TherapistCreate,
    db: Session = Depends(get_db),
):
    obj = DBTherapists(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=TherapistRead)
def update_therapist(
    id: int,
    data: TherapistUpdate,
    db: Session = Depends(get_db),
):
    obj = _get_or_404(db, id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, int(value) if field == "is_active" else value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_therapist(id: int, db: Session = Depends(get_db)):
    obj = _get_or_404(db, id)
    obj.is_active = 0
    db.commit()


# ---------------------------------------------------------------------
# Domain: Therapist → Working hours / stats
# ---------------------------------------------------------------------

@router.get("/{id}/schedule", response_model=list[WeeklyBlockRead])
def get_therapist_schedule(
    id: int,
    db: Session = Depends(get_db),
    store: AppointmentStore = Depends(get_store),
):
    _get_or_404(db, id)
    return store.find_working_hours(id)


@router.put("/{id}/schedule", response_model=list[WeeklyBlockRead])
def replace_therapist_schedule(
    id: int,
    blocks: list[WeeklyBlockIn],
    db: Session = Depends(get_db),
    store: AppointmentStore = Depends(get_store),
):
    _get_or_404(db, id)
    return store.replace_working_hours(id, blocks)


@router.get("/{id}/stats", response_model=TherapistStatsRead)
def get_therapist_stats(
    id: int,
    reference_date: date | None = None,
    db: Session = Depends(get_db),
    engine: SchedulingEngine = Depends(get_engine),
):
    _get_or_404(db, id)
    stats = engine.weekly_stats(id, reference_date)
    return TherapistStatsRead(
        therapist_id=id,
        week_start=stats.week_start,
        availability=stats.availability,
        occupancy=stats.occupancy,
    )
