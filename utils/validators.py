"""Input validation utilities."""

import re
from datetime import date, datetime
from typing import Optional

_TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def phone_digits(phone: str) -> str:
    """
    Reduce a phone number to its digits.

    Clients are not stored with a foreign key; appointments are matched to a
    client by these digits, so "(11) 98765-4321" and "11987654321" are the
    same person.

    Args:
        phone: Phone number string

    Returns:
        Digits only (may be empty)
    """
    if not phone:
        return ""
    return re.sub(r'\D', '', phone)


def same_phone(first: str, second: str) -> bool:
    """True when both numbers reduce to the same non-empty digit string."""
    digits = phone_digits(first)
    return bool(digits) and digits == phone_digits(second)


def validate_phone_number(phone: str) -> bool:
    """
    Validate a Brazilian phone number (area code + 8 or 9 digits).

    Args:
        phone: Phone number string

    Returns:
        True if valid, False otherwise
    """
    digits = phone_digits(phone)
    if digits.startswith('55') and len(digits) in (12, 13):
        digits = digits[2:]
    return len(digits) in (10, 11)


def format_phone_number(phone: str) -> str:
    """
    Format up to 11 digits as "(XX) XXXXX-XXXX" / "(XX) XXXX-XXXX".

    Args:
        phone: Phone number string

    Returns:
        Formatted phone number
    """
    digits = phone_digits(phone)[:11]
    length = len(digits)
    if length > 10:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if length > 6:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    if length > 2:
        return f"({digits[:2]}) {digits[2:]}"
    return digits


def to_e164(phone: str, country_code: str = '55') -> str:
    """
    Normalize phone number to E.164 format.

    Args:
        phone: Phone number string
        country_code: Country prefix applied to national numbers

    Returns:
        Normalized phone number
    """
    digits = phone_digits(phone)
    if phone.strip().startswith('+') or (digits.startswith(country_code) and len(digits) > 11):
        return f"+{digits}"
    return f"+{country_code}{digits}"


def validate_time(time_str: str) -> bool:
    """
    Validate a 24h "HH:MM" string.

    Args:
        time_str: Time string

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(time_str, str):
        return False
    return bool(_TIME_PATTERN.match(time_str))


def validate_datetime(dt_str: str) -> Optional[datetime]:
    """
    Validate and parse datetime string.

    Args:
        dt_str: Datetime string (ISO format)

    Returns:
        Parsed datetime object or None if invalid
    """
    try:
        return to_local_naive(datetime.fromisoformat(dt_str.replace('Z', '+00:00')))
    except (ValueError, AttributeError):
        return None


def to_local_naive(moment: datetime) -> datetime:
    """
    Express a datetime as naive local time.

    Stored timestamps arrive in UTC ("...Z"); the engine compares them with
    naive wall-clock times.

    Args:
        moment: Naive or timezone-aware datetime

    Returns:
        Naive datetime in the local timezone
    """
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def parse_stored_datetime(value) -> datetime:
    """Datetime from a stored ISO string (or datetime), as naive local time."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    return to_local_naive(value)


def parse_date(date_str: str) -> Optional[date]:
    """
    Parse a YYYY-MM-DD date string.

    Args:
        date_str: Date string

    Returns:
        Parsed date or None if invalid
    """
    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except (ValueError, TypeError):
        return None


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitize free-text input (client names, observations).

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Truncate to max length
    sanitized = text[:max_length]

    # Remove potentially harmful characters
    sanitized = re.sub(r'[<>]', '', sanitized)

    return sanitized.strip()
