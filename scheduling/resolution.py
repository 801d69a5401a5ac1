"""Turn Inference Service output into catalog-backed booking data.

The Inference Service returns free-form JSON extracted from a chat message or
a payment receipt. Nothing in it is trusted: every service and professional
name must match the catalog passed in, otherwise the request is rejected.
"""

import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from models.appointment import AppointmentDraft
from models.schedule import Professional, weekday_index
from models.service import Service
from scheduling.errors import UnresolvedReferenceError, ValidationError
from utils.logger import setup_logger

logger = setup_logger(__name__)

# 0=Sunday, matching WorkSchedule keys
WEEKDAYS = ['domingo', 'segunda', 'terca', 'quarta', 'quinta', 'sexta', 'sabado']

_TIME_RE = re.compile(r'^\s*(\d{1,2})[:hH](\d{2})\s*$')
_DAY_MONTH_RE = re.compile(r'\b(\d{1,2})/(\d{1,2})(?:/(\d{4}))?\b')
_ISO_DATE_RE = re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b')


@dataclass(frozen=True)
class ResolvedRequest:
    """Natural-language booking after catalog resolution."""

    client_name: str
    services: Tuple[Service, ...]
    professional_username: str
    start: datetime

    def to_draft(self, client_phone: str, client_email: Optional[str] = None,
                 observations: Optional[str] = None) -> AppointmentDraft:
        return AppointmentDraft(
            client_name=self.client_name,
            client_phone=client_phone,
            professional_username=self.professional_username,
            services=self.services,
            client_email=client_email,
            observations=observations,
        )


@dataclass(frozen=True)
class PaymentCheck:
    """Amount read from a payment receipt compared with what is owed."""

    extracted_value: float
    total_due: float
    matches: bool


def _fold(text: str) -> str:
    """Lowercase without accents ("Amanhã" -> "amanha")."""
    normalized = unicodedata.normalize('NFKD', text.strip().lower())
    return ''.join(char for char in normalized if not unicodedata.combining(char))


def _parse_time(time_text: str) -> Optional[Tuple[int, int]]:
    match = _TIME_RE.match(time_text or '')
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours, minutes


def _parse_day(date_text: str, now: datetime, hours: int, minutes: int) -> Optional[date]:
    text = _fold(date_text)
    today = now.date()

    iso = _ISO_DATE_RE.search(text)
    if iso:
        return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    if 'depois de amanha' in text:
        return today + timedelta(days=2)
    if 'amanha' in text:
        return today + timedelta(days=1)
    if 'hoje' in text:
        return today

    day_month = _DAY_MONTH_RE.search(text)
    if day_month:
        day, month = int(day_month.group(1)), int(day_month.group(2))
        if day_month.group(3):
            return date(int(day_month.group(3)), month, day)
        candidate = date(today.year, month, day)
        if datetime(candidate.year, candidate.month, candidate.day, hours, minutes) < now:
            candidate = date(today.year + 1, month, day)
        return candidate

    for index, name in enumerate(WEEKDAYS):
        if name in text:
            diff = index - weekday_index(today)
            if diff <= 0:
                diff += 7
            return today + timedelta(days=diff)

    return None


def parse_requested_datetime(date_text: str, time_text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse the loose date/time pair produced by the Inference Service.

    Understands "hoje", "amanhã", "depois de amanhã", "DD/MM" (rolled into next
    year when already past), "DD/MM/YYYY", ISO dates and weekday names (next
    occurrence, never today).

    Args:
        date_text: Date as written by the client
        time_text: Time as "HH:MM"
        now: Current time (defaults to the wall clock)

    Returns:
        Naive datetime, or None if either part cannot be understood
    """
    now = now or datetime.now()

    parsed_time = _parse_time(time_text)
    if parsed_time is None or not date_text:
        return None
    hours, minutes = parsed_time

    try:
        day = _parse_day(date_text, now, hours, minutes)
    except ValueError:
        # e.g. "31/02"
        return None

    if day is None:
        return None
    return datetime(day.year, day.month, day.day, hours, minutes)


def _field(parsed: Dict[str, Any], *names: str) -> Any:
    for name in names:
        if parsed.get(name) not in (None, ''):
            return parsed[name]
    return None


def _match_services(names: Iterable[str], services: Iterable[Service]) -> Tuple[Service, ...]:
    by_name = {_fold(service.name): service for service in services}
    matched: List[Service] = []
    unresolved: List[str] = []

    for name in names:
        service = by_name.get(_fold(str(name)))
        if service is None:
            unresolved.append(str(name))
        else:
            matched.append(service)

    if unresolved:
        raise UnresolvedReferenceError('service', unresolved)
    return tuple(matched)


def _match_professional(
    name: Optional[str],
    professionals: List[Professional],
    current_user: Optional[Professional]
) -> str:
    if name:
        folded = _fold(str(name))
        for professional in professionals:
            if _fold(professional.name) == folded or _fold(professional.username) == folded:
                return professional.username
        raise UnresolvedReferenceError('professional', [str(name)])

    if current_user is not None and not current_user.is_admin:
        return current_user.username
    if len(professionals) == 1:
        return professionals[0].username

    raise ValidationError("A professional must be specified")


def resolve_scheduling_request(
    parsed: Dict[str, Any],
    services: Iterable[Service],
    professionals: Iterable[Professional],
    current_user: Optional[Professional] = None,
    now: Optional[datetime] = None
) -> ResolvedRequest:
    """
    Resolve a natural-language booking against the live catalogs.

    Args:
        parsed: {clientName, services, professionalName?, date, time}
        services: Active service catalog
        professionals: Known professionals
        current_user: Logged-in professional (default when none is named)
        now: Current time (defaults to the wall clock)

    Returns:
        ResolvedRequest

    Raises:
        ValidationError: missing fields or unreadable date/time
        UnresolvedReferenceError: unknown service or professional name
    """
    client_name = _field(parsed, 'clientName', 'client_name')
    service_names = _field(parsed, 'services')
    date_text = _field(parsed, 'date')
    time_text = _field(parsed, 'time')

    missing = [
        label for label, value in (
            ('clientName', client_name),
            ('services', service_names),
            ('date', date_text),
            ('time', time_text),
        ) if not value
    ]
    if missing:
        raise ValidationError(f"Inference result is missing: {', '.join(missing)}")

    if isinstance(service_names, str):
        service_names = [service_names]

    start = parse_requested_datetime(str(date_text), str(time_text), now=now)
    if start is None:
        raise ValidationError(f"Could not understand date '{date_text} {time_text}'")

    matched_services = _match_services(service_names, services)
    professional_username = _match_professional(
        _field(parsed, 'professionalName', 'professional_name'),
        list(professionals),
        current_user,
    )

    logger.info(f"Resolved request for {client_name} with {professional_username} at {start:%Y-%m-%d %H:%M}")
    return ResolvedRequest(
        client_name=str(client_name).strip(),
        services=matched_services,
        professional_username=professional_username,
        start=start,
    )


def _to_amount(value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError("Payment value must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r'[^\d,.\-]', '', value)
        # Whichever separator comes last is the decimal one: "1.234,56" and "1,234.56"
        if cleaned.rfind(',') > cleaned.rfind('.'):
            cleaned = cleaned.replace('.', '').replace(',', '.')
        else:
            cleaned = cleaned.replace(',', '')
        try:
            return float(cleaned)
        except ValueError:
            pass
    raise ValidationError(f"Payment value '{value}' is not a number")


def resolve_payment_extraction(
    parsed: Dict[str, Any],
    total_due: float,
    tolerance: float = 0.01
) -> PaymentCheck:
    """
    Compare the value read from a payment receipt with the amount due.

    Args:
        parsed: {value} returned by the Inference Service
        total_due: Amount the client owes
        tolerance: Accepted absolute difference

    Returns:
        PaymentCheck
    """
    if parsed.get('value') is None:
        raise ValidationError("Inference result is missing: value")

    value = _to_amount(parsed['value'])
    if value < 0:
        raise ValidationError("Payment value cannot be negative")

    matches = abs(value - total_due) <= tolerance
    if not matches:
        logger.warning(f"Receipt value {value:.2f} differs from amount due {total_due:.2f}")
    return PaymentCheck(extracted_value=value, total_due=total_due, matches=matches)
