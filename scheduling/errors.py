"""Errors raised by the scheduling engine."""

from datetime import datetime
from typing import List, Sequence


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""


class ValidationError(SchedulingError):
    """Input rejected before any state change (missing field, bad times...)."""


class InvalidTransitionError(ValidationError):
    """Status change not allowed from the appointment's current status."""

    def __init__(self, current: str, target: str, message: str = None):
        self.current = current
        self.target = target
        super().__init__(message or f"Cannot move appointment from '{current}' to '{target}'")


class UnresolvedReferenceError(SchedulingError):
    """A service or professional name is not in the catalog in use."""

    def __init__(self, kind: str, names: Sequence[str]):
        self.kind = kind
        self.names: List[str] = list(names)
        super().__init__(f"Unknown {kind}: {', '.join(self.names)}")


class StaleConflict(SchedulingError):
    """Proposed time overlaps busy slots. The caller may override it."""

    def __init__(self, start: datetime, end: datetime, conflicts: Sequence[str]):
        self.start = start
        self.end = end
        self.conflicts: List[str] = list(conflicts)
        super().__init__(
            f"{start:%Y-%m-%d %H:%M}-{end:%H:%M} overlaps busy slots: {', '.join(self.conflicts)}"
        )


class CompletionRequired(SchedulingError):
    """An open appointment was moved into the past.

    The move is not saved; the caller has to collect a payment decision and
    finish it through ``lifecycle.complete_retroactively``.
    """

    def __init__(self, appointment, start: datetime, end: datetime):
        self.appointment = appointment
        self.start = start
        self.end = end
        super().__init__(
            f"Appointment {appointment.id} moved to the past ({start:%Y-%m-%d %H:%M}); completion required"
        )
