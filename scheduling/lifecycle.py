"""Appointment status state machine.

Every operation takes an appointment (or a collection snapshot) and returns
new objects; nothing is modified in place. Each accepted transition yields an
``AppointmentEvent`` the caller can hand to the notifier.

    pending ──approve──> scheduled ──> confirmed ──┐
                             │  └──────────┬───────┤
                             │          delayed    │
                             └──────> completed / cancelled  (terminal)

Scheduling or moving an open appointment to a time that has already passed
is treated as "it already happened": creation lands directly in
``completed``/``paid``; a move raises ``CompletionRequired`` so the caller can
ask for the payment outcome first.
"""

import time
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set, Tuple
from config.constants import (
    APPOINTMENT_STATUS_CANCELLED,
    APPOINTMENT_STATUS_COMPLETED,
    APPOINTMENT_STATUS_CONFIRMED,
    APPOINTMENT_STATUS_DELAYED,
    APPOINTMENT_STATUS_PENDING,
    APPOINTMENT_STATUS_SCHEDULED,
    EVENT_CANCELLED,
    EVENT_CREATED,
    EVENT_UPDATED,
    PAYMENT_STATUS_PAID,
    PAYMENT_STATUSES,
    TERMINAL_STATUSES,
)
from models.appointment import Appointment, AppointmentDraft, AppointmentEvent
from models.service import total_duration
from scheduling.errors import CompletionRequired, InvalidTransitionError, ValidationError
from utils.logger import setup_logger, ContextLogger
from utils.validators import sanitize_input

logger = setup_logger(__name__)

ALLOWED_TRANSITIONS: Dict[str, Set[str]] = {
    APPOINTMENT_STATUS_PENDING: {APPOINTMENT_STATUS_SCHEDULED},
    APPOINTMENT_STATUS_SCHEDULED: {
        APPOINTMENT_STATUS_CONFIRMED,
        APPOINTMENT_STATUS_DELAYED,
        APPOINTMENT_STATUS_COMPLETED,
        APPOINTMENT_STATUS_CANCELLED,
    },
    APPOINTMENT_STATUS_CONFIRMED: {
        APPOINTMENT_STATUS_DELAYED,
        APPOINTMENT_STATUS_COMPLETED,
        APPOINTMENT_STATUS_CANCELLED,
    },
    APPOINTMENT_STATUS_DELAYED: {
        APPOINTMENT_STATUS_COMPLETED,
        APPOINTMENT_STATUS_CANCELLED,
    },
    APPOINTMENT_STATUS_COMPLETED: set(),
    APPOINTMENT_STATUS_CANCELLED: set(),
}

# Statuses whose time can still be changed
MOVABLE_STATUSES = (
    APPOINTMENT_STATUS_SCHEDULED,
    APPOINTMENT_STATUS_CONFIRMED,
    APPOINTMENT_STATUS_DELAYED,
)


def new_appointment_id() -> int:
    """Wall-clock based id (milliseconds)."""
    return int(time.time() * 1000)


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def is_terminal(appointment: Appointment) -> bool:
    return appointment.status in TERMINAL_STATUSES


def _check_transition(appointment: Appointment, target: str):
    if appointment.status not in ALLOWED_TRANSITIONS:
        raise ValidationError(f"Unknown status '{appointment.status}' on appointment {appointment.id}")
    if not can_transition(appointment.status, target):
        raise InvalidTransitionError(appointment.status, target)


def _validate_draft(draft: AppointmentDraft):
    missing = [
        name for name in ('client_name', 'client_phone', 'professional_username')
        if not getattr(draft, name)
    ]
    if not draft.services:
        missing.append('services')
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if total_duration(draft.services) <= 0:
        raise ValidationError("Total service duration must be positive")


def _build(
    draft: AppointmentDraft,
    start: datetime,
    appointment_id: int,
    status: str,
    payment_status: Optional[str]
) -> Appointment:
    return Appointment(
        id=appointment_id,
        client_name=sanitize_input(draft.client_name, 120),
        client_phone=draft.client_phone,
        client_email=draft.client_email,
        professional_username=draft.professional_username,
        services=tuple(draft.services),
        datetime=start,
        end_time=start + timedelta(minutes=total_duration(draft.services)),
        status=status,
        payment_status=payment_status,
        observations=sanitize_input(draft.observations) if draft.observations else None,
    )


def initial_status(start: datetime, now: datetime) -> Tuple[str, Optional[str]]:
    """(status, payment_status) for a new appointment starting at ``start``."""
    if start < now:
        return APPOINTMENT_STATUS_COMPLETED, PAYMENT_STATUS_PAID
    return APPOINTMENT_STATUS_SCHEDULED, None


def create_appointment(
    draft: AppointmentDraft,
    start: datetime,
    now: Optional[datetime] = None,
    appointment_id: Optional[int] = None
) -> AppointmentEvent:
    """
    Put a new appointment on the calendar.

    A start in the past creates it already completed and paid.

    Args:
        draft: Client, professional, services and observations
        start: Start time
        now: Current time (defaults to the wall clock)
        appointment_id: Explicit id (defaults to a wall-clock id)

    Returns:
        AppointmentEvent with kind "created"
    """
    _validate_draft(draft)
    now = now or datetime.now()

    status, payment_status = initial_status(start, now)
    if appointment_id is None:
        appointment_id = new_appointment_id()
    appointment = _build(draft, start, appointment_id, status, payment_status)

    ctx_logger = ContextLogger(logger, appointment_id=appointment.id, professional=appointment.professional_username)
    if status == APPOINTMENT_STATUS_COMPLETED:
        ctx_logger.info(f"Retroactive appointment at {start:%Y-%m-%d %H:%M} created as completed/paid")
    else:
        ctx_logger.info(f"Appointment scheduled at {start:%Y-%m-%d %H:%M} for {appointment.client_name}")

    return AppointmentEvent(appointment=appointment, kind=EVENT_CREATED)


def submit_request(
    draft: AppointmentDraft,
    start: datetime,
    now: Optional[datetime] = None,
    request_id: Optional[int] = None
) -> Appointment:
    """
    Create a pending booking request (public booking page).

    Requests are kept apart from the calendar until an admin approves them.
    """
    _validate_draft(draft)
    now = now or datetime.now()
    if start < now:
        raise ValidationError("Booking requests must be for a future time")

    if request_id is None:
        request_id = new_appointment_id()
    request = _build(draft, start, request_id, APPOINTMENT_STATUS_PENDING, None)
    logger.info(f"Booking request {request.id} received for {start:%Y-%m-%d %H:%M}")
    return request


def approve_request(
    request: Appointment,
    appointments: Iterable[Appointment],
    requests: Iterable[Appointment],
    now: Optional[datetime] = None
) -> Tuple[List[Appointment], List[Appointment], AppointmentEvent]:
    """
    Move a pending request onto the calendar.

    Args:
        request: The pending request
        appointments: Current calendar snapshot
        requests: Current request queue snapshot
        now: Current time (defaults to the wall clock)

    Returns:
        (new appointments, new requests, "created" event)
    """
    _check_transition(request, APPOINTMENT_STATUS_SCHEDULED)

    queue = list(requests)
    if not any(item.id == request.id for item in queue):
        raise ValidationError(f"Booking request {request.id} is not in the queue")

    draft = AppointmentDraft(
        client_name=request.client_name,
        client_phone=request.client_phone,
        professional_username=request.professional_username,
        services=request.services,
        client_email=request.client_email,
        observations=request.observations,
    )
    event = create_appointment(draft, request.datetime, now=now, appointment_id=request.id)

    new_appointments = list(appointments) + [event.appointment]
    new_requests = [item for item in queue if item.id != request.id]

    logger.info(f"Booking request {request.id} approved for {request.client_name}")
    return new_appointments, new_requests, event


def reject_request(request_id: int, requests: Iterable[Appointment]) -> List[Appointment]:
    """Drop a pending request; no appointment is created."""
    queue = list(requests)
    remaining = [item for item in queue if item.id != request_id]
    if len(remaining) == len(queue):
        raise ValidationError(f"Booking request {request_id} is not in the queue")

    logger.info(f"Booking request {request_id} rejected")
    return remaining


def confirm(appointment: Appointment) -> AppointmentEvent:
    """scheduled -> confirmed."""
    _check_transition(appointment, APPOINTMENT_STATUS_CONFIRMED)
    updated = replace(appointment, status=APPOINTMENT_STATUS_CONFIRMED)
    logger.info(f"Appointment {appointment.id} confirmed")
    return AppointmentEvent(appointment=updated, kind=EVENT_UPDATED)


def mark_delayed(appointment: Appointment) -> AppointmentEvent:
    """Client is running late; times are left untouched."""
    _check_transition(appointment, APPOINTMENT_STATUS_DELAYED)
    updated = replace(appointment, status=APPOINTMENT_STATUS_DELAYED)
    logger.info(f"Appointment {appointment.id} marked as delayed")
    return AppointmentEvent(appointment=updated, kind=EVENT_UPDATED)


def _check_payment(appointment: Appointment, payment_status: Optional[str]):
    if payment_status not in PAYMENT_STATUSES:
        raise InvalidTransitionError(
            appointment.status,
            APPOINTMENT_STATUS_COMPLETED,
            f"Completing appointment {appointment.id} requires a payment status ({', '.join(PAYMENT_STATUSES)})"
        )


def complete(appointment: Appointment, payment_status: str) -> AppointmentEvent:
    """
    Finalize an appointment together with its payment outcome.

    Args:
        appointment: Open appointment
        payment_status: "paid" or "pending"

    Returns:
        AppointmentEvent with kind "updated"
    """
    _check_transition(appointment, APPOINTMENT_STATUS_COMPLETED)
    _check_payment(appointment, payment_status)

    updated = replace(appointment, status=APPOINTMENT_STATUS_COMPLETED, payment_status=payment_status)
    logger.info(f"Appointment {appointment.id} completed ({payment_status})")
    return AppointmentEvent(appointment=updated, kind=EVENT_UPDATED)


def cancel(appointment: Appointment, reason: Optional[str] = None) -> AppointmentEvent:
    """Soft-delete: the appointment stays in the history as cancelled."""
    _check_transition(appointment, APPOINTMENT_STATUS_CANCELLED)

    observations = appointment.observations
    if reason:
        observations = f"{observations or ''}\nMotivo do cancelamento: {sanitize_input(reason)}".strip()

    updated = replace(appointment, status=APPOINTMENT_STATUS_CANCELLED, observations=observations)
    logger.info(f"Appointment {appointment.id} cancelled")
    return AppointmentEvent(appointment=updated, kind=EVENT_CANCELLED)


def _check_movable(appointment: Appointment, new_start: datetime) -> datetime:
    """End time for ``new_start``, derived from the appointment's services."""
    if appointment.status not in MOVABLE_STATUSES:
        raise InvalidTransitionError(
            appointment.status,
            appointment.status,
            f"Appointment {appointment.id} is {appointment.status} and cannot be moved"
        )

    duration = total_duration(appointment.services)
    if duration <= 0:
        raise ValidationError(f"Appointment {appointment.id} has no service duration")
    return new_start + timedelta(minutes=duration)


def reschedule(
    appointment: Appointment,
    new_start: datetime,
    now: Optional[datetime] = None
) -> AppointmentEvent:
    """
    Change the time of an open appointment.

    The end time always follows from the booked services, so the duration
    cannot drift from what was sold.

    Args:
        appointment: Scheduled, confirmed or delayed appointment
        new_start: New start time
        now: Current time (defaults to the wall clock)

    Returns:
        AppointmentEvent with kind "updated"

    Raises:
        CompletionRequired: the new start is in the past
    """
    new_end = _check_movable(appointment, new_start)
    now = now or datetime.now()

    if new_start < now:
        logger.info(f"Appointment {appointment.id} moved to the past, completion required")
        raise CompletionRequired(appointment, new_start, new_end)

    updated = replace(appointment, datetime=new_start, end_time=new_end)
    logger.info(f"Appointment {appointment.id} moved to {new_start:%Y-%m-%d %H:%M}")
    return AppointmentEvent(appointment=updated, kind=EVENT_UPDATED)


def complete_retroactively(
    appointment: Appointment,
    new_start: datetime,
    payment_status: str
) -> AppointmentEvent:
    """Commit a move into the past together with its completion."""
    new_end = _check_movable(appointment, new_start)
    _check_payment(appointment, payment_status)

    updated = replace(
        appointment,
        datetime=new_start,
        end_time=new_end,
        status=APPOINTMENT_STATUS_COMPLETED,
        payment_status=payment_status,
    )
    logger.info(f"Appointment {appointment.id} moved to {new_start:%Y-%m-%d %H:%M} and completed ({payment_status})")
    return AppointmentEvent(appointment=updated, kind=EVENT_UPDATED)


def mark_paid(appointments: Iterable[Appointment], appointment_ids: Iterable[int]) -> List[Appointment]:
    """Settle the payment of several appointments (payment proof accepted)."""
    ids = set(appointment_ids)
    updated = [
        replace(appointment, payment_status=PAYMENT_STATUS_PAID) if appointment.id in ids else appointment
        for appointment in appointments
    ]
    logger.info(f"Marked {len(ids)} appointments as paid")
    return updated


def replace_appointment(appointments: Iterable[Appointment], updated: Appointment) -> List[Appointment]:
    """New collection with ``updated`` swapped in by id."""
    result = []
    found = False
    for appointment in appointments:
        if appointment.id == updated.id:
            result.append(updated)
            found = True
        else:
            result.append(appointment)

    if not found:
        raise ValidationError(f"Appointment {updated.id} not found")
    return result


def upcoming_reminders(
    appointments: Iterable[Appointment],
    now: Optional[datetime] = None,
    hours: int = 24
) -> List[Appointment]:
    """
    Open appointments starting within the next ``hours`` that still need a reminder.

    Args:
        appointments: Calendar snapshot
        now: Current time (defaults to the wall clock)
        hours: Look-ahead window

    Returns:
        Scheduled or confirmed appointments strictly inside the window, soonest first
    """
    now = now or datetime.now()
    horizon = now + timedelta(hours=hours)
    due = [
        appointment for appointment in appointments
        if appointment.status in (APPOINTMENT_STATUS_SCHEDULED, APPOINTMENT_STATUS_CONFIRMED)
        and not appointment.reminder_sent
        and now < appointment.datetime < horizon
    ]
    return sorted(due, key=lambda appointment: appointment.datetime)


def mark_reminder_sent(appointments: Iterable[Appointment], appointment_id: int) -> List[Appointment]:
    """New collection with the reminder of ``appointment_id`` flagged as sent."""
    result = []
    found = False
    for appointment in appointments:
        if appointment.id == appointment_id:
            appointment = replace(appointment, reminder_sent=True)
            found = True
        result.append(appointment)

    if not found:
        raise ValidationError(f"Appointment {appointment_id} not found")
    logger.info(f"Reminder sent for appointment {appointment_id}")
    return result
