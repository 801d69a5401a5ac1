"""Drag-and-drop rescheduling in two steps: resolve the drop, then validate.

``resolve_drop`` only turns a pointer position into grid-aligned times; it
accepts any target. Conflict detection is a separate call so the calendar can
let the user override a detected conflict.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional
from config.constants import SLOT_INTERVAL_MINUTES
from models.appointment import Appointment, AppointmentEvent
from models.schedule import BlockedSlot
from models.service import total_duration
from scheduling.availability import find_conflicts
from scheduling.errors import CompletionRequired, StaleConflict, ValidationError
from scheduling.lifecycle import MOVABLE_STATUSES, reschedule
from scheduling.time_grid import snap_minutes
from utils.logger import setup_logger, ContextLogger

logger = setup_logger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class DropCandidate:
    """Where a dragged appointment would land."""

    start: datetime
    end: datetime


def pixels_to_minutes(pixel_offset: float, pixels_per_hour: float) -> float:
    """Convert a vertical pointer offset in the day column into minutes."""
    if pixels_per_hour <= 0:
        raise ValidationError("pixels_per_hour must be positive")
    return pixel_offset / pixels_per_hour * 60


def resolve_drop(
    appointment: Appointment,
    pointer_offset_minutes: float,
    target_day: date,
    step: int = SLOT_INTERVAL_MINUTES
) -> DropCandidate:
    """
    Grid-snapped start and end for an appointment dropped on ``target_day``.

    Args:
        appointment: Appointment being dragged
        pointer_offset_minutes: Drop position, in minutes after midnight
        target_day: Day column the appointment was dropped on
        step: Slot size in minutes

    Returns:
        DropCandidate spanning the appointment's services
    """
    snapped = snap_minutes(pointer_offset_minutes, step)
    snapped = max(0, min(snapped, MINUTES_PER_DAY - step))

    start = datetime.combine(target_day, time(0, 0)) + timedelta(minutes=snapped)
    end = start + timedelta(minutes=total_duration(appointment.services))

    logger.debug(f"Drop of {appointment.id} at {pointer_offset_minutes:.1f} min resolved to {start:%Y-%m-%d %H:%M}")
    return DropCandidate(start=start, end=end)


def validate_drop(
    appointment: Appointment,
    candidate: DropCandidate,
    blocked_slots: Iterable[BlockedSlot],
    appointments: Iterable[Appointment],
    now: Optional[datetime] = None,
    allow_override: bool = False
) -> List[str]:
    """
    Check a drop candidate before committing it.

    Args:
        appointment: Appointment being moved
        candidate: Result of ``resolve_drop``
        blocked_slots: Blocks to honor
        appointments: Current calendar snapshot
        now: Current time (defaults to the wall clock)
        allow_override: Accept conflicts instead of raising

    Returns:
        Conflicting slots that were overridden (empty when free)

    Raises:
        CompletionRequired: the candidate starts in the past
        StaleConflict: the candidate overlaps busy slots and no override
    """
    ctx_logger = ContextLogger(logger, appointment_id=appointment.id, professional=appointment.professional_username)

    if appointment.status not in MOVABLE_STATUSES:
        raise ValidationError(f"Appointment {appointment.id} is {appointment.status} and cannot be moved")

    now = now or datetime.now()
    if candidate.start < now:
        ctx_logger.info("Drop lands in the past, completion required")
        raise CompletionRequired(appointment, candidate.start, candidate.end)

    conflicts = find_conflicts(
        candidate.start,
        candidate.end,
        appointment.professional_username,
        blocked_slots,
        appointments,
        exclude_appointment_id=appointment.id,
    )

    if conflicts and not allow_override:
        ctx_logger.warning(f"Drop conflicts with busy slots: {', '.join(conflicts)}")
        raise StaleConflict(candidate.start, candidate.end, conflicts)

    if conflicts:
        ctx_logger.warning(f"Conflict overridden by user: {', '.join(conflicts)}")

    return conflicts


def commit_drop(
    appointment: Appointment,
    candidate: DropCandidate,
    now: Optional[datetime] = None
) -> AppointmentEvent:
    """Apply a validated drop through the lifecycle."""
    return reschedule(appointment, candidate.start, now=now)
