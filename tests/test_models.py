"""Tests for data models."""

from datetime import date, datetime, timezone

from models.appointment import Appointment
from models.schedule import BlockedSlot, Professional, WorkDay, weekday_index
from models.service import Service, load_catalog, total_duration, total_value


def test_weekday_index():
    """0 is Sunday."""
    assert weekday_index(date(2030, 6, 2)) == 0
    assert weekday_index(date(2030, 6, 3)) == 1
    assert weekday_index(date(2030, 6, 1)) == 6


def test_service_catalog():
    catalog = load_catalog([
        {'name': 'Manicure', 'value': 25, 'duration': 30},
        {'name': 'Pedicure', 'value': 35.0, 'duration_minutes': 30, 'category': 'Pés'},
    ])
    assert catalog[0] == Service('Manicure', 25.0, 30)
    assert total_duration(catalog) == 60
    assert total_value(catalog) == 60.0
    assert catalog[0].with_value(45.0).value == 45.0
    assert catalog[0].value == 25.0


def test_professional_from_json():
    """JSON object keys arrive as strings."""
    professional = Professional.from_dict({
        'username': 'ana',
        'name': 'Ana Souza',
        'work_schedule': {'1': {'start': '09:00', 'end': '18:00'}, '0': None},
    })

    assert professional.work_day(date(2030, 6, 3)) == WorkDay('09:00', '18:00')
    assert professional.work_day(date(2030, 6, 2)) is None
    assert professional.has_schedule
    assert not professional.is_admin
    assert Professional.from_dict(professional.to_dict()) == professional


def test_blocked_slot_scope():
    salon_wide = BlockedSlot.from_dict({'id': 1, 'date': '2030-06-03', 'is_full_day': True})
    personal = BlockedSlot(id=2, date=date(2030, 6, 3), professional_username='carla')

    assert salon_wide.date == date(2030, 6, 3)
    assert salon_wide.applies_to('ana')
    assert personal.applies_to('carla')
    assert not personal.applies_to('ana')


def test_appointment_serialization(make_appointment):
    appointment = make_appointment(1, duration=90)
    data = appointment.to_dict()

    assert data['datetime'] == '2030-06-03T10:00:00'
    assert data['services'][0]['name'] == 'Manicure'
    assert appointment.duration_minutes == 90
    assert Appointment.from_dict(data) == appointment


def test_appointment_from_utc_timestamps(make_appointment):
    data = make_appointment(1).to_dict()
    data['datetime'] = '2030-06-03T13:00:00.000Z'
    data['end_time'] = '2030-06-03T14:00:00.000Z'
    appointment = Appointment.from_dict(data)

    expected = datetime(2030, 6, 3, 13, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert appointment.datetime.tzinfo is None
    assert appointment.end_time.tzinfo is None
    assert appointment.datetime == expected
    assert appointment.duration_minutes == 60
    # Comparable with naive wall-clock times
    assert appointment.datetime > datetime(2030, 6, 1, 8, 0)


def test_blocked_slot_from_utc_timestamp():
    slot = BlockedSlot.from_dict({'id': 1, 'date': '2030-06-03T12:00:00.000Z', 'is_full_day': True})
    expected = datetime(2030, 6, 3, 12, 0, tzinfo=timezone.utc).astimezone().date()
    assert slot.date == expected
