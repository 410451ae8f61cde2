import os
from collections import defaultdict
from datetime import date

# Keep the app's own engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scheduler.models.generated import Appointments, Base, Clients, Therapists
from scheduler.services.scheduling.engine import SchedulingEngine
from scheduler.services.scheduling.store import AppointmentStore

MONDAY = date(2024, 6, 3)


class FakeRedis:
    """In-test double for the few Redis commands the app uses."""

    def __init__(self):
        self.data = {}
        self.lists = defaultdict(list)

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.data:
            return None
        self.data[key] = value
        return True

    def get(self, key):
        return self.data.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    def rpush(self, key, value):
        self.lists[key].append(value)
        return len(self.lists[key])


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def store(db):
    return AppointmentStore(db)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def engine(store):
    return SchedulingEngine(store)


@pytest.fixture
def therapist_id(db):
    obj = Therapists(name="Ana Ruiz", specialty="Logopedia")
    db.add(obj)
    db.commit()
    return obj.id


@pytest.fixture
def client_id(db):
    obj = Clients(first_name="Lucas", last_name="García")
    db.add(obj)
    db.commit()
    return obj.id


@pytest.fixture
def other_client_id(db):
    obj = Clients(first_name="Marta", last_name="López")
    db.add(obj)
    db.commit()
    return obj.id


def add_appointment(db, **fields) -> Appointments:
    """Insert an appointment row directly, bypassing the engine."""
    values = {
        "start_time": "10:00",
        "end_time": "11:00",
        "duration_minutes": 60,
        "status": "confirmed",
        "frequency": "puntual",
    }
    values.update(fields)
    obj = Appointments(**values)
    db.add(obj)
    db.commit()
    return obj


def booking(therapist_id, client_id, **overrides) -> dict:
    data = {
        "client_id": client_id,
        "therapist_id": therapist_id,
        "date": MONDAY,
        "start_time": "10:00",
        "duration_minutes": 60,
        "frequency": "semanal",
        "horizon_period": "1 mes",
        "status": "confirmed",
    }
    data.update(overrides)
    return data
