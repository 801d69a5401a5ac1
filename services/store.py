"""In-memory schedule state, swapped as whole collections."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from models.appointment import Appointment
from models.schedule import BlockedSlot
from utils.logger import setup_logger
from utils.validators import same_phone

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ScheduleSnapshot:
    """Consistent view of the calendar at one point in time."""

    appointments: Tuple[Appointment, ...]
    requests: Tuple[Appointment, ...]
    blocked_slots: Tuple[BlockedSlot, ...]


class ScheduleStore:
    """Holds the current appointments, booking requests and blocks.

    Engine functions never mutate these collections; they return new ones
    that replace the stored tuple.
    """

    def __init__(
        self,
        appointments: Iterable[Appointment] = (),
        requests: Iterable[Appointment] = (),
        blocked_slots: Iterable[BlockedSlot] = ()
    ):
        self.appointments: Tuple[Appointment, ...] = tuple(appointments)
        self.requests: Tuple[Appointment, ...] = tuple(requests)
        self.blocked_slots: Tuple[BlockedSlot, ...] = tuple(blocked_slots)

    def snapshot(self) -> ScheduleSnapshot:
        return ScheduleSnapshot(
            appointments=self.appointments,
            requests=self.requests,
            blocked_slots=self.blocked_slots,
        )

    def replace_appointments(self, appointments: Iterable[Appointment]):
        self.appointments = tuple(appointments)
        logger.debug(f"Appointments replaced ({len(self.appointments)} total)")

    def replace_requests(self, requests: Iterable[Appointment]):
        self.requests = tuple(requests)
        logger.debug(f"Booking requests replaced ({len(self.requests)} total)")

    def replace_blocked_slots(self, blocked_slots: Iterable[BlockedSlot]):
        self.blocked_slots = tuple(blocked_slots)
        logger.debug(f"Blocked slots replaced ({len(self.blocked_slots)} total)")

    def find_appointment(self, appointment_id: int) -> Optional[Appointment]:
        """
        Retrieve an appointment by id.

        Args:
            appointment_id: Appointment id

        Returns:
            Appointment or None
        """
        for appointment in self.appointments:
            if appointment.id == appointment_id:
                return appointment
        return None

    def find_request(self, request_id: int) -> Optional[Appointment]:
        for request in self.requests:
            if request.id == request_id:
                return request
        return None

    def client_history(self, phone: str) -> List[Appointment]:
        """
        All appointments of a client, newest first.

        Args:
            phone: Client phone in any format

        Returns:
            Appointments whose phone has the same digits
        """
        history = [
            appointment for appointment in self.appointments
            if same_phone(appointment.client_phone, phone)
        ]
        return sorted(history, key=lambda appointment: appointment.datetime, reverse=True)
