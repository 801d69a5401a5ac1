"""Service catalog data models."""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List


@dataclass(frozen=True)
class Service:
    """Price-list entry. Appointments keep their own copy of it."""

    name: str
    value: float
    duration_minutes: int
    category: str = ''

    def with_value(self, value: float) -> 'Service':
        """Copy of this service carrying a different price."""
        return replace(self, value=value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'name': self.name,
            'value': self.value,
            'duration_minutes': self.duration_minutes,
            'category': self.category
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Service':
        """Create Service from dictionary."""
        duration = data.get('duration_minutes', data.get('duration', 0))
        return cls(
            name=data['name'],
            value=float(data.get('value', 0)),
            duration_minutes=int(duration),
            category=data.get('category', '')
        )


def load_catalog(entries: Iterable[Dict[str, Any]]) -> List[Service]:
    """Build a service catalog from plain dictionaries."""
    return [Service.from_dict(entry) for entry in entries]


def total_duration(services: Iterable[Service]) -> int:
    return sum(service.duration_minutes for service in services)


def total_value(services: Iterable[Service]) -> float:
    return sum(service.value for service in services)
