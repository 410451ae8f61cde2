import json
from datetime import date, timedelta

import pytest

from scheduler.services.events import P2P_QUEUE
from scheduler.services.scheduling.engine import SchedulingEngine
from scheduler.services.scheduling.errors import (
    NotFoundError,
    PartialBatchFailure,
    UnlinkedSeriesError,
    ValidationError,
)

from conftest import MONDAY, add_appointment, booking

D1, D2, D3, D4 = (MONDAY + timedelta(days=7 * i) for i in range(4))


@pytest.fixture
def series(engine, therapist_id, client_id):
    """Four weekly occurrences D1..D4, returned as ids."""
    created = engine.create_recurring_appointment(booking(therapist_id, client_id))
    return [a.id for a in created]


def snapshot(store, therapist_id):
    return [
        (a.id, a.date, a.start_time, a.end_time, a.duration_minutes, a.status,
         a.therapist_id, a.notes, a.series_id, a.frequency)
        for a in store.find_appointments_by_therapist(therapist_id)
    ]


# ── this_only ────────────────────────────────────────────────────────────


def test_edit_this_only_detaches_target(engine, store, series, therapist_id):
    siblings_before = [row for row in snapshot(store, therapist_id) if row[0] != series[1]]

    updated = engine.update_appointment_series(series[1], "this_only", {"start_time": "12:00"})

    target = updated[0]
    assert target.id == series[1]
    assert target.start_time == "12:00"
    assert target.end_time == "13:00"
    assert target.series_id is None
    assert target.frequency == "puntual"
    siblings_after = [row for row in snapshot(store, therapist_id) if row[0] != series[1]]
    assert siblings_after == siblings_before


def test_delete_this_only(engine, store, series, therapist_id):
    assert engine.delete_appointment_series(series[2], "this_only") == 1
    assert [a.id for a in store.find_appointments_by_therapist(therapist_id)] == [
        series[0], series[1], series[3]
    ]


# ── this_and_future ──────────────────────────────────────────────────────


def test_edit_this_and_future_leaves_past_untouched(engine, store, series, therapist_id):
    updated = engine.update_appointment_series(series[1], "this_and_future", {"notes": "Sala 2"})

    assert [a.id for a in updated] == series[1:]
    rows = {a.id: a for a in store.find_appointments_by_therapist(therapist_id)}
    assert rows[series[0]].notes is None
    assert all(rows[i].notes == "Sala 2" for i in series[1:])
    assert len({a.series_id for a in rows.values()}) == 1


def test_edit_this_and_future_shifts_dates_and_times(engine, store, series, therapist_id):
    engine.update_appointment_series(
        series[1], "this_and_future", {"date": D2 + timedelta(days=1), "start_time": "11:00"}
    )

    rows = store.find_appointments_by_therapist(therapist_id)
    assert [(a.date, a.start_time, a.end_time) for a in rows] == [
        (D1, "10:00", "11:00"),
        (D2 + timedelta(days=1), "11:00", "12:00"),
        (D3 + timedelta(days=1), "11:00", "12:00"),
        (D4 + timedelta(days=1), "11:00", "12:00"),
    ]


def test_edit_duration_recomputes_end(engine, store, series, therapist_id):
    engine.update_appointment_series(series[2], "this_and_future", {"duration_minutes": 45})

    rows = store.find_appointments_by_therapist(therapist_id)
    assert [a.end_time for a in rows] == ["11:00", "11:00", "10:45", "10:45"]
    assert [a.duration_minutes for a in rows] == [60, 60, 45, 45]


def test_edit_skips_status_for_cancelled_occurrences(engine, store, series, therapist_id):
    with store.transaction():
        store.update_appointment(series[2], {"status": "cancelled"})

    engine.update_appointment_series(series[1], "this_and_future", {"status": "pending"})

    statuses = {a.id: a.status for a in store.find_appointments_by_therapist(therapist_id)}
    assert statuses[series[1]] == "pending"
    assert statuses[series[2]] == "cancelled"
    assert statuses[series[3]] == "pending"


def test_delete_this_and_future(engine, store, series, therapist_id):
    deleted = engine.delete_appointment_series(series[1], "this_and_future")

    assert deleted == 3
    assert [a.id for a in store.find_appointments_by_therapist(therapist_id)] == [series[0]]


def test_delete_this_and_future_without_series_removes_target_only(
    db, engine, store, therapist_id, client_id
):
    one_off = add_appointment(db, therapist_id=therapist_id, client_id=client_id, date=D1)
    other = add_appointment(db, therapist_id=therapist_id, client_id=client_id, date=D2)

    assert engine.delete_appointment_series(one_off.id, "this_and_future") == 1
    assert [a.id for a in store.find_appointments_by_therapist(therapist_id)] == [other.id]


def test_edit_this_and_future_links_legacy_rows(db, engine, store, therapist_id, client_id):
    legacy = [
        add_appointment(db, therapist_id=therapist_id, client_id=client_id, date=day, frequency="semanal")
        for day in (D1, D2, D3)
    ]

    updated = engine.update_appointment_series(legacy[1].id, "this_and_future", {"notes": "Revisión"})

    assert [a.id for a in updated] == [legacy[1].id, legacy[2].id]
    rows = store.find_appointments_by_therapist(therapist_id)
    assert rows[0].series_id is None
    assert rows[1].series_id is not None
    assert rows[1].series_id == rows[2].series_id


# ── change_series_frequency ──────────────────────────────────────────────


def test_frequency_change_renumbers_from_target(engine, store, series, therapist_id):
    updated = engine.change_series_frequency(series[1], "quincenal")

    assert [a.date for a in updated] == [D2, D2 + timedelta(days=14), D2 + timedelta(days=28)]
    assert all(a.frequency == "quincenal" for a in updated)
    first = store.find_appointment_by_id(series[0])
    assert (first.date, first.frequency) == (D1, "semanal")


def test_frequency_change_links_legacy_rows(db, engine, store, therapist_id, client_id):
    rows = [
        add_appointment(db, therapist_id=therapist_id, client_id=client_id, date=day, frequency="semanal")
        for day in (D1, D2, D3)
    ]
    unrelated = add_appointment(db, therapist_id=therapist_id, client_id=client_id, date=D2,
                                start_time="12:00", end_time="13:00", frequency="semanal")

    updated = engine.change_series_frequency(rows[0].id, "quincenal")

    assert [a.id for a in updated] == [r.id for r in rows]
    assert [a.date for a in updated] == [D1, D1 + timedelta(days=14), D1 + timedelta(days=28)]
    assert len({a.series_id for a in updated}) == 1
    assert updated[0].series_id is not None
    assert store.find_appointment_by_id(unrelated.id).series_id is None


def test_frequency_change_on_one_off_fails_without_changes(db, engine, store, therapist_id, client_id):
    one_off = add_appointment(db, therapist_id=therapist_id, client_id=client_id, date=D1)
    before = snapshot(store, therapist_id)

    with pytest.raises(UnlinkedSeriesError):
        engine.change_series_frequency(one_off.id, "quincenal")

    assert snapshot(store, therapist_id) == before


def test_frequency_change_rejects_bad_literal(engine, series):
    with pytest.raises(ValidationError):
        engine.change_series_frequency(series[0], "puntual")


# ── errors ───────────────────────────────────────────────────────────────


def test_invalid_scope(engine, store, series, therapist_id):
    before = snapshot(store, therapist_id)

    with pytest.raises(ValidationError):
        engine.update_appointment_series(series[0], "everything", {"notes": "x"})
    with pytest.raises(ValidationError):
        engine.delete_appointment_series(series[0], "everything")

    assert snapshot(store, therapist_id) == before


def test_missing_appointment(engine):
    with pytest.raises(NotFoundError):
        engine.update_appointment_series(999, "this_only", {"notes": "x"})
    with pytest.raises(NotFoundError):
        engine.delete_appointment_series(999, "this_and_future")
    with pytest.raises(NotFoundError):
        engine.change_series_frequency(999, "semanal")


def test_cancelled_appointment_cannot_be_reactivated(engine, series):
    engine.update_appointment_series(series[0], "this_only", {"status": "cancelled"})

    with pytest.raises(ValidationError):
        engine.update_appointment_series(series[0], "this_only", {"status": "confirmed"})


def test_edit_past_midnight_rejected(engine, series):
    with pytest.raises(ValidationError):
        engine.update_appointment_series(series[0], "this_and_future", {"start_time": "23:30"})


def test_failed_batch_rolls_back(engine, store, series, therapist_id, monkeypatch):
    original = store.update_appointment
    calls = {"n": 0}

    def flaky(appointment_id, patch):
        calls["n"] += 1
        if calls["n"] == 3:
            raise RuntimeError("disk full")
        return original(appointment_id, patch)

    monkeypatch.setattr(store, "update_appointment", flaky)

    with pytest.raises(PartialBatchFailure) as exc_info:
        engine.update_appointment_series(series[0], "this_and_future", {"notes": "Sala 3"})

    failure = exc_info.value
    assert (failure.completed, failure.total, failure.rolled_back) == (2, 4, True)
    assert all(a.notes is None for a in store.find_appointments_by_therapist(therapist_id))


def test_mutations_emit_events(store, fake_redis, therapist_id, client_id):
    engine = SchedulingEngine(store, redis=fake_redis)
    ids = [a.id for a in engine.create_recurring_appointment(booking(therapist_id, client_id))]

    engine.update_appointment_series(ids[0], "this_and_future", {"notes": "x"})
    engine.change_series_frequency(ids[1], "quincenal")
    engine.delete_appointment_series(ids[2], "this_and_future")

    events = [json.loads(e) for e in fake_redis.lists[P2P_QUEUE]]
    assert [e["type"] for e in events] == [
        "appointment_created",
        "appointment_series_updated",
        "appointment_series_frequency_changed",
        "appointment_series_deleted",
    ]
    assert events[-1]["deleted"] == 2


@pytest.mark.parametrize("scope", ["this_only", "this_and_future"])
@pytest.mark.parametrize(
    "patch",
    [
        {"status": None},
        {"therapist_id": None},
        {"duration_minutes": None},
        {"date": None},
        {"start_time": None},
        {"end_time": None},
    ],
)
def test_null_required_field_rejected(engine, store, series, therapist_id, scope, patch):
    before = snapshot(store, therapist_id)

    with pytest.raises(ValidationError):
        engine.update_appointment_series(series[1], scope, patch)

    assert snapshot(store, therapist_id) == before


def test_null_notes_clears_them(engine, store, series):
    engine.update_appointment_series(series[0], "this_only", {"notes": "Sala 2"})
    engine.update_appointment_series(series[0], "this_only", {"notes": None})

    assert store.find_appointment_by_id(series[0]).notes is None


# ── midnight ─────────────────────────────────────────────────────────────


def test_edit_may_end_at_midnight(engine, therapist_id, client_id):
    created = engine.create_recurring_appointment(
        booking(therapist_id, client_id, frequency="puntual", start_time="23:00", duration_minutes=30)
    )

    updated = engine.update_appointment_series(created[0].id, "this_only", {"end_time": "24:00"})

    assert (updated[0].start_time, updated[0].end_time) == ("23:00", "24:00")
    assert updated[0].duration_minutes == 60


def test_shift_past_midnight_rejected(engine, store, therapist_id, client_id):
    ids = [
        a.id for a in engine.create_recurring_appointment(
            booking(therapist_id, client_id, start_time="22:00")
        )
    ]
    # third occurrence runs later than the rest of the series
    with store.transaction():
        store.update_appointment(ids[2], {"start_time": "23:00", "end_time": "23:45", "duration_minutes": 45})
    before = snapshot(store, therapist_id)

    with pytest.raises(ValidationError):
        engine.update_appointment_series(
            ids[1], "this_and_future", {"start_time": "23:00", "end_time": "24:00"}
        )

    assert snapshot(store, therapist_id) == before
