"""Caller-side entry point wiring the scheduling engine to the store and notifier."""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence
from config.constants import EVENT_CREATED
from config.settings import config
from models.appointment import Appointment, AppointmentDraft, AppointmentEvent
from models.schedule import Professional
from models.service import Service, total_duration
from scheduling import lifecycle
from scheduling.availability import find_available_starts, find_conflicts
from scheduling.errors import (
    CompletionRequired,
    StaleConflict,
    UnresolvedReferenceError,
    ValidationError,
)
from scheduling.packages import generate_package, resolve_rotation, session_price
from scheduling.reschedule import commit_drop, resolve_drop, validate_drop
from scheduling.time_grid import time_of
from services.notifications import NotificationService, reminder_link
from services.store import ScheduleStore
from utils.logger import setup_logger, ContextLogger

logger = setup_logger(__name__)


class BookingDesk:
    """
    Runs engine operations against a ScheduleStore.

    Each call reads a snapshot, lets the engine compute new collections,
    swaps them into the store and then hands the resulting event to the
    notifier. A failed notification never undoes the change.
    """

    def __init__(
        self,
        store: ScheduleStore,
        services: Iterable[Service],
        professionals: Iterable[Professional],
        notifier: Optional[NotificationService] = None,
        package_price: Optional[float] = None
    ):
        self.store = store
        self.services: List[Service] = list(services)
        self.professionals: List[Professional] = list(professionals)
        self.notifier = notifier
        self.package_price = config.PACKAGE_PRICE if package_price is None else package_price

    def get_professional(self, username: str) -> Professional:
        for professional in self.professionals:
            if professional.username == username:
                return professional
        raise UnresolvedReferenceError('professional', [username])

    def _notify(self, event: AppointmentEvent) -> bool:
        if self.notifier is None:
            return False
        return self.notifier.notify(event)

    def _next_id(self) -> int:
        """Wall-clock id, bumped past ids already in the store."""
        snapshot = self.store.snapshot()
        taken = {item.id for item in snapshot.appointments + snapshot.requests}
        candidate = lifecycle.new_appointment_id()
        while candidate in taken:
            candidate += 1
        return candidate

    def _get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.store.find_appointment(appointment_id)
        if appointment is None:
            raise ValidationError(f"Appointment {appointment_id} not found")
        return appointment

    def _save(self, event: AppointmentEvent) -> Appointment:
        snapshot = self.store.snapshot()
        self.store.replace_appointments(lifecycle.replace_appointment(snapshot.appointments, event.appointment))
        self._notify(event)
        return event.appointment

    def available_starts(
        self,
        day: date,
        professional_username: str,
        services: Sequence[Service],
        exclude_appointment_id: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> List[str]:
        """
        Free start times for the given services with one professional.

        Args:
            day: Day being booked
            professional_username: Professional being booked
            services: Requested services (durations are summed)
            exclude_appointment_id: Appointment being edited
            now: Current time (defaults to the wall clock)

        Returns:
            Ascending "HH:MM" start times
        """
        snapshot = self.store.snapshot()
        return find_available_starts(
            day,
            self.get_professional(professional_username),
            total_duration(services),
            snapshot.blocked_slots,
            snapshot.appointments,
            exclude_appointment_id=exclude_appointment_id,
            now=now,
        )

    def _ensure_free(
        self,
        draft: AppointmentDraft,
        start: datetime,
        now: datetime,
        exclude_appointment_id: Optional[int] = None
    ):
        if start < now:
            # Back-filled appointments are recorded as they happened
            return

        available = self.available_starts(
            start.date(), draft.professional_username, draft.services, exclude_appointment_id, now
        )
        if time_of(start) in available:
            return

        snapshot = self.store.snapshot()
        end = start + timedelta(minutes=total_duration(draft.services))
        conflicts = find_conflicts(
            start, end, draft.professional_username, snapshot.blocked_slots, snapshot.appointments,
            exclude_appointment_id
        )
        if conflicts:
            raise StaleConflict(start, end, conflicts)
        raise ValidationError(f"{start:%Y-%m-%d %H:%M} is not an available start for {draft.professional_username}")

    def book(self, draft: AppointmentDraft, start: datetime, now: Optional[datetime] = None) -> Appointment:
        """
        Book an appointment after re-checking availability.

        Args:
            draft: Client, professional and services
            start: Start time (a past start is recorded as completed/paid)
            now: Current time (defaults to the wall clock)

        Returns:
            The stored appointment

        Raises:
            StaleConflict: the slot was taken since availability was shown
        """
        now = now or datetime.now()
        self.get_professional(draft.professional_username)
        self._ensure_free(draft, start, now)

        event = lifecycle.create_appointment(draft, start, now=now, appointment_id=self._next_id())
        self.store.replace_appointments(self.store.snapshot().appointments + (event.appointment,))
        self._notify(event)
        return event.appointment

    def book_package(
        self,
        core: AppointmentDraft,
        first_date: datetime,
        package_price: Optional[float] = None,
        now: Optional[datetime] = None,
        seed: Optional[int] = None
    ) -> List[Appointment]:
        """
        Book the four weekly sessions of a monthly package.

        Only the first session is checked against the calendar; later weeks
        are placed at the same time and may need manual adjustment.

        Args:
            core: Client identity and professional
            first_date: Start of the first session
            package_price: Whole package price (defaults to config)
            now: Current time (defaults to the wall clock)
            seed: Id seed (defaults to the wall clock)

        Returns:
            The stored sessions
        """
        now = now or datetime.now()
        self.get_professional(core.professional_username)

        rotation = resolve_rotation(self.services)
        price = session_price(self.package_price if package_price is None else package_price)

        first = AppointmentDraft(
            client_name=core.client_name,
            client_phone=core.client_phone,
            professional_username=core.professional_username,
            services=tuple(rotation[0]),
        )
        self._ensure_free(first, first_date, now)

        seed = seed if seed is not None else self._next_id()
        sessions = generate_package(core, first_date, price, rotation, now=now, seed=seed)
        self.store.replace_appointments(self.store.snapshot().appointments + tuple(sessions))

        ContextLogger(logger, package_id=sessions[0].package_id).info(f"Package booked for {core.client_name}")
        self._notify(AppointmentEvent(appointment=sessions[0], kind=EVENT_CREATED))
        return sessions

    def submit_request(self, draft: AppointmentDraft, start: datetime, now: Optional[datetime] = None) -> Appointment:
        """Queue a booking request from the public page."""
        now = now or datetime.now()
        self.get_professional(draft.professional_username)

        request = lifecycle.submit_request(draft, start, now=now, request_id=self._next_id())
        self.store.replace_requests(self.store.snapshot().requests + (request,))
        return request

    def approve_request(self, request_id: int, now: Optional[datetime] = None) -> Appointment:
        snapshot = self.store.snapshot()
        request = self.store.find_request(request_id)
        if request is None:
            raise ValidationError(f"Booking request {request_id} is not in the queue")

        appointments, requests, event = lifecycle.approve_request(
            request, snapshot.appointments, snapshot.requests, now=now
        )
        self.store.replace_appointments(appointments)
        self.store.replace_requests(requests)
        self._notify(event)
        return event.appointment

    def reject_request(self, request_id: int):
        self.store.replace_requests(lifecycle.reject_request(request_id, self.store.snapshot().requests))

    def confirm(self, appointment_id: int) -> Appointment:
        return self._save(lifecycle.confirm(self._get_appointment(appointment_id)))

    def mark_delayed(self, appointment_id: int) -> Appointment:
        return self._save(lifecycle.mark_delayed(self._get_appointment(appointment_id)))

    def complete(self, appointment_id: int, payment_status: str) -> Appointment:
        return self._save(lifecycle.complete(self._get_appointment(appointment_id), payment_status))

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        return self._save(lifecycle.cancel(self._get_appointment(appointment_id), reason))

    def mark_paid(self, appointment_ids: Iterable[int]):
        self.store.replace_appointments(lifecycle.mark_paid(self.store.snapshot().appointments, appointment_ids))

    def reminders(self, now: Optional[datetime] = None, hours: int = 24) -> List[Appointment]:
        """Appointments in the next ``hours`` whose reminder is still due."""
        return lifecycle.upcoming_reminders(self.store.snapshot().appointments, now=now, hours=hours)

    def send_reminder(self, appointment_id: int) -> str:
        """
        Flag the reminder as sent and return the WhatsApp link that delivers it.

        Args:
            appointment_id: Appointment to remind

        Returns:
            wa.me link prefilled with the reminder text
        """
        appointment = self._get_appointment(appointment_id)
        salon_name = self.notifier.salon_name if self.notifier is not None else None
        link = reminder_link(appointment, salon_name)
        self.store.replace_appointments(
            lifecycle.mark_reminder_sent(self.store.snapshot().appointments, appointment_id)
        )
        return link

    def move(
        self,
        appointment_id: int,
        pointer_offset_minutes: float,
        target_day: date,
        now: Optional[datetime] = None,
        allow_override: bool = False
    ) -> Appointment:
        """
        Drag-and-drop an appointment to another time.

        Args:
            appointment_id: Appointment being dragged
            pointer_offset_minutes: Drop position in minutes after midnight
            target_day: Day column it was dropped on
            now: Current time (defaults to the wall clock)
            allow_override: Keep the drop even when it conflicts

        Returns:
            The moved appointment

        Raises:
            StaleConflict: the drop overlaps busy slots (retry with override)
            CompletionRequired: the drop lands in the past; finish it with
                ``complete_moved``
        """
        now = now or datetime.now()
        appointment = self._get_appointment(appointment_id)
        snapshot = self.store.snapshot()

        candidate = resolve_drop(appointment, pointer_offset_minutes, target_day)
        validate_drop(
            appointment, candidate, snapshot.blocked_slots, snapshot.appointments,
            now=now, allow_override=allow_override
        )
        return self._save(commit_drop(appointment, candidate, now=now))

    def complete_moved(self, pending: CompletionRequired, payment_status: str) -> Appointment:
        """Finish a move into the past with the collected payment decision."""
        event = lifecycle.complete_retroactively(pending.appointment, pending.start, payment_status)
        return self._save(event)
