# backend/scheduler/routers/clients.py
# PATCH = ALLOWED, DELETE = soft-delete (is_active)
# Domain relation: clients -> weekly availability (replaced wholesale)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_store
from ..models.generated import Clients as DBClients
from ..schemas.clients import (
    ClientCreate,
    ClientUpdate,
    ClientRead,
)
from ..schemas.schedule import WeeklyBlockIn, WeeklyBlockRead
from ..services.scheduling.store import AppointmentStore

router = APIRouter(prefix="/clients", tags=["clients"])


def _get_or_404(db: Session, id: int) -> DBClients:
    obj = db.get(DBClients, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.get("/", response_model=list[ClientRead])
def list_clients(db: Session = Depends(get_db)):
    return (
        db.query(DBClients)
        .filter(DBClients.is_active == 1)
        .order_by(DBClients.first_name, DBClients.last_name)
        .all()
    )


@router.get("/{id}", response_model=ClientRead)
def get_client(id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, id)


@router.post("/", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    data: ClientCreate,
    db: Session = Depends(get_db),
):
    obj = DBClients(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=ClientRead)
def update_client(
    id: int,
    data: ClientUpdate,
    db: Session = Depends(get_db),
):
    obj = _get_or_404(db, id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, int(value) if field == "is_active" else value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(id: int, db: Session = Depends(get_db)):
    obj = _get_or_404(db, id)
    obj.is_active = 0
    db.commit()


@router.get("/{id}/availability", response_model=list[WeeklyBlockRead])
def get_client_availability(
    id: int,
    db: Session = Depends(get_db),
    store: AppointmentStore = Depends(get_store),
):
    _get_or_404(db, id)
    return store.find_availability(id)


@router.put("/{id}/availability", response_model=list[WeeklyBlockRead])
def replace_client_availability(
    id: int,
    blocks: list[WeeklyBlockIn],
    db: Session = Depends(get_db),
    store: AppointmentStore = Depends(get_store),
):
    _get_or_404(db, id)
    return store.replace_availability(id, blocks)
