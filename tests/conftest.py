"""Shared fixtures for the scheduling engine tests."""

import os
import sys
from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

# Add parent dir to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Console logging only while testing
os.environ.setdefault('LOG_FILE', '')

from config.constants import SERVICES  # noqa: E402
from models.appointment import Appointment, AppointmentDraft  # noqa: E402
from models.schedule import Professional, WorkDay  # noqa: E402
from models.service import load_catalog  # noqa: E402

# Saturday morning; 2030-06-03 is the following Monday
NOW = datetime(2030, 6, 1, 8, 0)
MONDAY = date(2030, 6, 3)
SATURDAY = date(2030, 6, 8)


@pytest.fixture
def catalog():
    return load_catalog(SERVICES)


@pytest.fixture
def manicure(catalog):
    return next(service for service in catalog if service.name == 'Manicure')


@pytest.fixture
def pedicure(catalog):
    return next(service for service in catalog if service.name == 'Pedicure')


@pytest.fixture
def professional():
    """Works Monday to Friday, 09:00-18:00."""
    hours = WorkDay(start='09:00', end='18:00')
    return Professional(
        username='ana',
        name='Ana Souza',
        work_schedule={weekday: hours for weekday in range(1, 6)}
    )


@pytest.fixture
def draft(manicure, pedicure):
    return AppointmentDraft(
        client_name='Maria Silva',
        client_phone='(11) 98765-4321',
        professional_username='ana',
        services=(manicure, pedicure)
    )


@pytest.fixture
def make_appointment(manicure):
    """Factory for appointments held by ``ana`` on MONDAY unless told otherwise.

    The single service lasts ``duration`` minutes so the span matches it.
    """
    def _make(appointment_id, start='10:00', duration=60, status='scheduled', day=MONDAY,
              professional='ana', phone='(11) 98765-4321', payment_status=None):
        hours, minutes = start.split(':')
        begin = datetime(day.year, day.month, day.day, int(hours), int(minutes))
        return Appointment(
            id=appointment_id,
            client_name='Maria Silva',
            client_phone=phone,
            professional_username=professional,
            services=(replace(manicure, duration_minutes=duration),),
            datetime=begin,
            end_time=begin + timedelta(minutes=duration),
            status=status,
            payment_status=payment_status
        )
    return _make
