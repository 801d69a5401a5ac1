"""Tests for the schedule store."""

from datetime import date

from models.schedule import BlockedSlot
from services.store import ScheduleStore


def test_snapshot_is_stable(make_appointment):
    store = ScheduleStore(appointments=[make_appointment(1)])
    snapshot = store.snapshot()

    store.replace_appointments([make_appointment(1), make_appointment(2)])

    assert len(snapshot.appointments) == 1
    assert len(store.snapshot().appointments) == 2
    assert isinstance(store.appointments, tuple)


def test_replace_collections(make_appointment):
    store = ScheduleStore()
    store.replace_requests([make_appointment(5, status='pending')])
    store.replace_blocked_slots([BlockedSlot(id=1, date=date(2030, 6, 3), is_full_day=True)])

    assert store.find_request(5) is not None
    assert store.find_request(6) is None
    assert len(store.snapshot().blocked_slots) == 1


def test_find_appointment(make_appointment):
    store = ScheduleStore(appointments=[make_appointment(1), make_appointment(2)])
    assert store.find_appointment(2).id == 2
    assert store.find_appointment(3) is None


def test_client_history(make_appointment):
    store = ScheduleStore(appointments=[
        make_appointment(1, day=date(2030, 5, 10), phone='11987654321'),
        make_appointment(2, day=date(2030, 6, 3), phone='(11) 98765-4321'),
        make_appointment(3, day=date(2030, 6, 4), phone='11 91111-2222'),
    ])

    history = store.client_history('11 98765 4321')
    assert [appointment.id for appointment in history] == [2, 1]
    assert store.client_history('') == []
