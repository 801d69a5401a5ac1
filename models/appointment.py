"""Appointment data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from models.service import Service
from utils.validators import parse_stored_datetime


@dataclass(frozen=True)
class Appointment:
    """Booked appointment.

    Instances are immutable; status changes go through
    ``scheduling.lifecycle`` which returns updated copies.
    """

    id: int
    client_name: str
    client_phone: str
    professional_username: str
    services: Tuple[Service, ...]
    datetime: datetime
    end_time: datetime
    status: str = 'scheduled'  # pending, scheduled, confirmed, delayed, completed, cancelled
    client_email: Optional[str] = None
    payment_status: Optional[str] = None  # paid, pending
    observations: Optional[str] = None
    is_package_appointment: bool = False
    package_id: Optional[str] = None
    reminder_sent: bool = False

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.datetime).total_seconds() // 60)

    @property
    def total_value(self) -> float:
        return sum(service.value for service in self.services)

    @property
    def service_names(self) -> str:
        return ', '.join(service.name for service in self.services)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'client_name': self.client_name,
            'client_phone': self.client_phone,
            'client_email': self.client_email,
            'professional_username': self.professional_username,
            'services': [service.to_dict() for service in self.services],
            'datetime': self.datetime.isoformat(),
            'end_time': self.end_time.isoformat(),
            'status': self.status,
            'payment_status': self.payment_status,
            'observations': self.observations,
            'is_package_appointment': self.is_package_appointment,
            'package_id': self.package_id,
            'reminder_sent': self.reminder_sent
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Appointment':
        """Create Appointment from dictionary."""
        # Stored timestamps may be UTC ("...Z"); the engine works in naive local time
        start = parse_stored_datetime(data['datetime'])
        end = parse_stored_datetime(data['end_time'])

        return cls(
            id=data['id'],
            client_name=data['client_name'],
            client_phone=data['client_phone'],
            client_email=data.get('client_email'),
            professional_username=data['professional_username'],
            services=tuple(Service.from_dict(service) for service in data.get('services', [])),
            datetime=start,
            end_time=end,
            status=data.get('status', 'scheduled'),
            payment_status=data.get('payment_status'),
            observations=data.get('observations'),
            is_package_appointment=bool(data.get('is_package_appointment', False)),
            package_id=data.get('package_id'),
            reminder_sent=bool(data.get('reminder_sent', False))
        )


@dataclass(frozen=True)
class AppointmentDraft:
    """Who is booked, with whom and for what; everything but the time."""

    client_name: str
    client_phone: str
    professional_username: str
    services: Tuple[Service, ...] = ()
    client_email: Optional[str] = None
    observations: Optional[str] = None


@dataclass(frozen=True)
class AppointmentEvent:
    """Outcome of a lifecycle transition, handed to the notifier."""

    appointment: Appointment
    kind: str  # created, updated, cancelled
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'appointment': self.appointment.to_dict(),
            'kind': self.kind,
            'timestamp': self.timestamp.isoformat()
        }
