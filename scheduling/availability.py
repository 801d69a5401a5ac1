"""Bookable start times for a professional on a given day."""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Set, Tuple
from config.constants import APPOINTMENT_STATUS_CANCELLED, APPOINTMENT_STATUS_PENDING, SLOT_INTERVAL_MINUTES
from models.appointment import Appointment
from models.schedule import BlockedSlot, Professional
from scheduling.errors import ValidationError
from scheduling.time_grid import TIMES, combine, next_grid_time, slots_needed, time_to_minutes
from utils.logger import setup_logger, ContextLogger

logger = setup_logger(__name__)

# Appointments in these statuses do not hold their slot
_FREE_STATUSES = (APPOINTMENT_STATUS_CANCELLED, APPOINTMENT_STATUS_PENDING)


def resolve_working_window(
    day: date,
    professional: Professional,
    grid: List[str] = TIMES
) -> Optional[Tuple[str, str]]:
    """
    Working hours of a professional on ``day``.

    A professional without any configured schedule works the whole grid. With
    a schedule, a weekday that is missing or None is a day off.

    Args:
        day: Day being booked
        professional: Professional being booked
        grid: Time grid in use

    Returns:
        (start, end) "HH:MM" pair, or None for a day off
    """
    if not professional.has_schedule:
        return grid[0], grid[-1]

    work_day = professional.work_day(day)
    if not work_day:
        return None

    return work_day.start, work_day.end


def build_busy_set(
    day: date,
    professional_username: str,
    blocked_slots: Iterable[BlockedSlot],
    appointments: Iterable[Appointment],
    exclude_appointment_id: Optional[int] = None,
    grid: List[str] = TIMES,
    step: int = SLOT_INTERVAL_MINUTES
) -> Set[str]:
    """
    Grid slots of ``day`` that cannot be booked for a professional.

    Args:
        day: Day being booked
        professional_username: Professional being booked
        blocked_slots: Salon-wide and per-professional blocks
        appointments: Existing appointments (any professional, any day)
        exclude_appointment_id: Appointment to ignore (the one being moved)
        grid: Time grid in use
        step: Slot size in minutes

    Returns:
        Set of busy "HH:MM" slot starts
    """
    busy: Set[str] = set()

    for slot in blocked_slots:
        if slot.date != day or not slot.applies_to(professional_username):
            continue

        if slot.is_full_day:
            return set(grid)

        if not slot.start_time:
            logger.warning(f"Ignoring partial block {slot.id} without start time")
            continue

        start = time_to_minutes(slot.start_time)
        end_str = slot.end_time or next_grid_time(slot.start_time, grid)
        end = time_to_minutes(end_str) if end_str else start + step

        for time_str in grid:
            if start <= time_to_minutes(time_str) < end:
                busy.add(time_str)

    day_start = combine(day, '00:00')
    day_end = day_start + timedelta(days=1)

    for appointment in appointments:
        if appointment.professional_username != professional_username:
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if appointment.status in _FREE_STATUSES:
            continue
        if appointment.end_time <= day_start or appointment.datetime >= day_end:
            continue

        for time_str in grid:
            slot_start = combine(day, time_str)
            if appointment.datetime <= slot_start < appointment.end_time:
                busy.add(time_str)

    return busy


def find_available_starts(
    day: date,
    professional: Professional,
    required_duration_minutes: int,
    blocked_slots: Iterable[BlockedSlot],
    existing_appointments: Iterable[Appointment],
    exclude_appointment_id: Optional[int] = None,
    now: Optional[datetime] = None,
    grid: List[str] = TIMES,
    step: int = SLOT_INTERVAL_MINUTES
) -> List[str]:
    """
    Start times at which ``required_duration_minutes`` fits for a professional.

    A candidate is kept only if every grid slot of its span is free and the
    whole span lies inside the working window. On the current day, starts that
    already passed are dropped. An empty list means "no availability" and is
    not an error.

    Args:
        day: Day being booked
        professional: Professional being booked
        required_duration_minutes: Total duration of the requested services
        blocked_slots: Blocks to honor
        existing_appointments: Appointments already on the calendar
        exclude_appointment_id: Appointment to ignore (re-validating an edit)
        now: Current time (defaults to the wall clock)
        grid: Time grid in use
        step: Slot size in minutes

    Returns:
        Ascending list of "HH:MM" start times
    """
    ctx_logger = ContextLogger(logger, professional=professional.username, day=day.isoformat())

    needed = slots_needed(required_duration_minutes, step)

    window = resolve_working_window(day, professional, grid)
    if window is None:
        ctx_logger.info("Day off, no availability")
        return []

    work_start = time_to_minutes(window[0])
    work_end = time_to_minutes(window[1])
    if work_end <= work_start:
        raise ValidationError(f"Working hours end {window[1]} must be after start {window[0]}")

    busy = build_busy_set(
        day,
        professional.username,
        list(blocked_slots),
        list(existing_appointments),
        exclude_appointment_id,
        grid,
        step
    )

    now = now or datetime.now()
    is_today = day == now.date()

    available: List[str] = []
    # The last grid entry is the closing sentinel and never part of a span
    for i in range(len(grid) - needed):
        candidate = grid[i]
        start = time_to_minutes(candidate)
        end = start + needed * step

        if start < work_start or end > work_end:
            continue

        if is_today and combine(day, candidate) < now:
            continue

        if any(grid[i + j] in busy for j in range(needed)):
            continue

        available.append(candidate)

    ctx_logger.info(f"Found {len(available)} available starts for {required_duration_minutes} min")
    return available


def find_conflicts(
    start: datetime,
    end: datetime,
    professional_username: str,
    blocked_slots: Iterable[BlockedSlot],
    appointments: Iterable[Appointment],
    exclude_appointment_id: Optional[int] = None,
    grid: List[str] = TIMES,
    step: int = SLOT_INTERVAL_MINUTES
) -> List[str]:
    """
    Busy grid slots overlapping ``[start, end)``.

    Args:
        start: Proposed start
        end: Proposed end
        professional_username: Professional being booked
        blocked_slots: Blocks to honor
        appointments: Appointments already on the calendar
        exclude_appointment_id: Appointment to ignore (the one being moved)
        grid: Time grid in use
        step: Slot size in minutes

    Returns:
        Ascending list of conflicting "HH:MM" slot starts (empty when free)
    """
    if end <= start:
        raise ValidationError("End time must be after start time")

    day = start.date()
    busy = build_busy_set(
        day,
        professional_username,
        blocked_slots,
        appointments,
        exclude_appointment_id,
        grid,
        step
    )

    conflicts = []
    for time_str in grid:
        if time_str not in busy:
            continue
        slot_start = combine(day, time_str)
        if slot_start < end and slot_start + timedelta(minutes=step) > start:
            conflicts.append(time_str)

    return conflicts


def is_day_bookable(
    day: date,
    professional: Professional,
    blocked_slots: Iterable[BlockedSlot],
    now: Optional[datetime] = None
) -> bool:
    """False for past days, days off and days under a full-day block."""
    now = now or datetime.now()
    if day < now.date():
        return False

    if resolve_working_window(day, professional) is None:
        return False

    return not any(
        slot.is_full_day and slot.date == day and slot.applies_to(professional.username)
        for slot in blocked_slots
    )
