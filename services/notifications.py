"""WhatsApp notifications for appointment events."""

from typing import Optional
from urllib.parse import quote
from twilio.rest import Client
from config.constants import EVENT_CANCELLED, EVENT_CREATED, EVENT_UPDATED
from config.settings import config
from models.appointment import Appointment, AppointmentEvent
from scheduling.errors import ValidationError
from utils.logger import setup_logger, ContextLogger
from utils.validators import phone_digits, to_e164

logger = setup_logger(__name__)

STATUS_LABELS = {
    'pending': 'aguardando aprovação',
    'scheduled': 'agendado',
    'confirmed': 'confirmado',
    'delayed': 'com atraso',
    'completed': 'concluído',
    'cancelled': 'cancelado',
}


def format_currency(value: float) -> str:
    """BRL amount as "R$ 1234,50"."""
    return f"R$ {value:.2f}".replace('.', ',')


def compose_message(event: AppointmentEvent, salon_name: Optional[str] = None) -> str:
    """
    Build the client-facing WhatsApp text for an event.

    Args:
        event: Lifecycle event
        salon_name: Name shown to the client (defaults to config)

    Returns:
        Message body
    """
    salon_name = salon_name or config.SALON_NAME
    appointment = event.appointment
    first_name = appointment.client_name.split()[0] if appointment.client_name.strip() else appointment.client_name
    when = f"{appointment.datetime:%d/%m/%Y} às {appointment.datetime:%H:%M}"

    if event.kind == EVENT_CREATED:
        return (
            f"Olá, {first_name}! Seu horário no {salon_name} está marcado para {when}.\n"
            f"Serviços: {appointment.service_names}\n"
            f"Valor: {format_currency(appointment.total_value)}"
        )

    if event.kind == EVENT_UPDATED:
        status = STATUS_LABELS.get(appointment.status, appointment.status)
        return (
            f"Olá, {first_name}! Seu horário no {salon_name} foi atualizado.\n"
            f"Data: {when}\n"
            f"Situação: {status}"
        )

    if event.kind == EVENT_CANCELLED:
        return f"Olá, {first_name}! Seu horário no {salon_name} de {when} foi cancelado."

    raise ValidationError(f"Unknown event kind '{event.kind}'")


def whatsapp_link(phone: str, text: str) -> str:
    """
    wa.me deep link that opens a chat with ``text`` prefilled.

    Args:
        phone: Client phone in any format
        text: Message to prefill

    Returns:
        URL
    """
    digits = phone_digits(to_e164(phone))
    return f"https://wa.me/{digits}?text={quote(text)}"


def compose_reminder(appointment: Appointment, salon_name: Optional[str] = None) -> str:
    """Reminder text for an appointment coming up within the day."""
    salon_name = salon_name or config.SALON_NAME
    first_name = appointment.client_name.split()[0] if appointment.client_name.strip() else appointment.client_name
    return (
        f"Olá, {first_name}! Lembrete do seu horário no {salon_name}: "
        f"{appointment.datetime:%d/%m/%Y} às {appointment.datetime:%H:%M}.\n"
        f"Serviços: {appointment.service_names}"
    )


def reminder_link(appointment: Appointment, salon_name: Optional[str] = None) -> str:
    """wa.me link prefilled with the reminder for ``appointment``."""
    if not appointment.client_phone:
        raise ValidationError(f"Appointment {appointment.id} has no client phone")
    return whatsapp_link(appointment.client_phone, compose_reminder(appointment, salon_name))


def _whatsapp_address(number: str) -> str:
    if number.startswith('whatsapp:'):
        return number
    return f"whatsapp:{to_e164(number)}"


class NotificationService:
    """Sends appointment events to clients over WhatsApp (Twilio)."""

    def __init__(
        self,
        client: Optional[Client] = None,
        from_number: Optional[str] = None,
        enabled: Optional[bool] = None,
        salon_name: Optional[str] = None
    ):
        """Initialize Twilio client."""
        self.enabled = config.NOTIFICATIONS_ENABLED if enabled is None else enabled
        self.from_number = from_number or config.TWILIO_WHATSAPP_FROM
        self.salon_name = salon_name or config.SALON_NAME
        self.twilio_client = client

        if self.twilio_client is None and self.enabled:
            try:
                self.twilio_client = Client(
                    config.TWILIO_ACCOUNT_SID,
                    config.TWILIO_AUTH_TOKEN
                )
            except Exception as e:
                logger.error(f"Failed to initialize Twilio client: {e}")
                self.twilio_client = None

    def notify(self, event: AppointmentEvent) -> bool:
        """
        Send the WhatsApp message for an event.

        Failures are logged and reported through the return value; the
        schedule change that produced the event stands regardless.

        Args:
            event: Lifecycle event

        Returns:
            True if sent successfully, False otherwise
        """
        appointment = event.appointment
        ctx_logger = ContextLogger(logger, appointment_id=appointment.id, event=event.kind)

        if not self.enabled:
            ctx_logger.debug("Notifications disabled, skipping")
            return False

        if not self.twilio_client or not self.from_number:
            ctx_logger.warning("Twilio client not configured, skipping WhatsApp message")
            return False

        if not appointment.client_phone:
            ctx_logger.warning("Appointment has no client phone, skipping WhatsApp message")
            return False

        try:
            body = compose_message(event, self.salon_name)

            message_obj = self.twilio_client.messages.create(
                body=body,
                from_=_whatsapp_address(self.from_number),
                to=_whatsapp_address(appointment.client_phone)
            )

            ctx_logger.info(f"WhatsApp message sent: {message_obj.sid}")
            return True

        except Exception as e:
            ctx_logger.error(f"Error sending WhatsApp message: {e}")
            return False
