# backend/scheduler/dependencies.py

from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .redis_client import redis_client
from .services.scheduling.engine import SchedulingEngine
from .services.scheduling.store import AppointmentStore


def get_store(db: Session = Depends(get_db)) -> AppointmentStore:
    return AppointmentStore(db)


def get_redis():
    return redis_client


def get_engine(
    store: AppointmentStore = Depends(get_store),
    redis=Depends(get_redis),
) -> SchedulingEngine:
    return SchedulingEngine(
        store,
        redis=redis,
        lock_ttl_seconds=settings.slot_lock_ttl_seconds,
    )
