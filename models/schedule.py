"""Professional, work schedule and blocked slot data models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from utils.validators import parse_stored_datetime

ROLE_ADMIN = 'admin'
ROLE_PROFESSIONAL = 'professional'


def weekday_index(day: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class WorkDay:
    """Working hours for one weekday ("HH:MM", 24h)."""

    start: str
    end: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {'start': self.start, 'end': self.end}


@dataclass
class Professional:
    """Salon professional and their weekly work schedule.

    An empty ``work_schedule`` means the schedule was never configured and
    every day falls back to the full grid. Once any weekday is configured, a
    weekday that is missing or ``None`` is a day off.
    """

    username: str
    name: str
    role: str = ROLE_PROFESSIONAL
    assigned_services: List[str] = field(default_factory=list)
    work_schedule: Dict[int, Optional[WorkDay]] = field(default_factory=dict)
    bio: Optional[str] = None
    color: Optional[str] = None

    @property
    def has_schedule(self) -> bool:
        return len(self.work_schedule) > 0

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def work_day(self, day: date) -> Optional[WorkDay]:
        """Configured hours for the weekday of ``day`` (None if not set)."""
        return self.work_schedule.get(weekday_index(day))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'username': self.username,
            'name': self.name,
            'role': self.role,
            'assigned_services': list(self.assigned_services),
            'work_schedule': {
                str(weekday): work_day.to_dict() if work_day else None
                for weekday, work_day in self.work_schedule.items()
            },
            'bio': self.bio,
            'color': self.color
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Professional':
        """Create Professional from dictionary (JSON keys may be strings)."""
        schedule = {}
        for weekday, work_day in (data.get('work_schedule') or {}).items():
            schedule[int(weekday)] = WorkDay(**work_day) if work_day else None

        return cls(
            username=data['username'],
            name=data['name'],
            role=data.get('role') or ROLE_PROFESSIONAL,
            assigned_services=list(data.get('assigned_services') or []),
            work_schedule=schedule,
            bio=data.get('bio'),
            color=data.get('color')
        )


@dataclass(frozen=True)
class BlockedSlot:
    """Period during which nobody (or one professional) can be booked."""

    id: int
    date: date
    is_full_day: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    professional_username: Optional[str] = None
    reason: Optional[str] = None

    def applies_to(self, professional_username: str) -> bool:
        """Blocks without a professional apply to the whole salon."""
        return self.professional_username is None or self.professional_username == professional_username

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'is_full_day': self.is_full_day,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'professional_username': self.professional_username,
            'reason': self.reason
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BlockedSlot':
        """Create BlockedSlot from dictionary."""
        day = data['date']
        if isinstance(day, (str, datetime)):
            day = parse_stored_datetime(day).date()

        return cls(
            id=data['id'],
            date=day,
            is_full_day=bool(data.get('is_full_day', False)),
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            professional_username=data.get('professional_username'),
            reason=data.get('reason')
        )
