"""Monthly package: one request expanded into weekly sessions."""

import time
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence
from config.constants import (
    APPOINTMENT_STATUS_SCHEDULED,
    PACKAGE_INTERVAL_DAYS,
    PACKAGE_ROTATION,
    PACKAGE_SESSIONS,
    PAYMENT_STATUS_PENDING,
)
from models.appointment import Appointment, AppointmentDraft
from models.service import Service
from scheduling.errors import UnresolvedReferenceError, ValidationError
from scheduling.lifecycle import create_appointment
from utils.logger import setup_logger, ContextLogger

logger = setup_logger(__name__)


def session_price(package_price: float, sessions: int = PACKAGE_SESSIONS) -> float:
    """Price of one session when the package is paid as a whole."""
    if package_price < 0:
        raise ValidationError("Package price cannot be negative")
    return round(package_price / sessions, 2)


def resolve_rotation(
    catalog: Iterable[Service],
    rotation_names: Sequence[Sequence[str]] = PACKAGE_ROTATION
) -> List[List[Service]]:
    """
    Look up the rotation's service names in the active catalog.

    Args:
        catalog: Current service price list
        rotation_names: Service names per session slot of the rotation

    Returns:
        Services per rotation entry, in rotation order

    Raises:
        UnresolvedReferenceError: a name is missing from the catalog
    """
    by_name = {service.name: service for service in catalog}

    missing = sorted({
        name for names in rotation_names for name in names if name not in by_name
    })
    if missing:
        logger.warning(f"Package rotation references unknown services: {', '.join(missing)}")
        raise UnresolvedReferenceError('service', missing)

    return [[by_name[name] for name in names] for names in rotation_names]


def new_package_id(seed: int) -> str:
    return f"pkg-{seed}"


def generate_package(
    core: AppointmentDraft,
    first_date: datetime,
    price_per_session: float,
    rotation: Sequence[Sequence[Service]],
    now: Optional[datetime] = None,
    seed: Optional[int] = None
) -> List[Appointment]:
    """
    Expand a package booking into weekly appointments.

    Session ``i`` starts ``i`` weeks after ``first_date`` and uses
    ``rotation[i % len(rotation)]``, each service priced at
    ``price_per_session``. The past/future rule is applied per session, so a
    package started in the past can mix completed and scheduled sessions.
    Nothing is returned unless every session could be built.

    Args:
        core: Client identity, professional and observations
        first_date: Start of the first session
        price_per_session: Price overriding the catalog value
        rotation: Services per session, cycled through
        now: Current time (defaults to the wall clock)
        seed: Timestamp used for ids and package id (defaults to now in ms)

    Returns:
        The package sessions, sharing one package id
    """
    if not rotation or any(not services for services in rotation):
        raise ValidationError("Package rotation needs at least one service per session")
    if price_per_session < 0:
        raise ValidationError("Session price cannot be negative")

    now = now or datetime.now()
    seed = seed if seed is not None else int(time.time() * 1000)
    package_id = new_package_id(seed)

    ctx_logger = ContextLogger(logger, package_id=package_id, professional=core.professional_username)

    sessions = []
    for i in range(PACKAGE_SESSIONS):
        services = tuple(service.with_value(price_per_session) for service in rotation[i % len(rotation)])
        start = first_date + timedelta(days=i * PACKAGE_INTERVAL_DAYS)

        event = create_appointment(replace(core, services=services), start, now=now, appointment_id=seed + i)
        appointment = event.appointment

        # Future sessions of a package are already sold; payment is collected upfront
        payment_status = appointment.payment_status
        if appointment.status == APPOINTMENT_STATUS_SCHEDULED:
            payment_status = PAYMENT_STATUS_PENDING

        sessions.append(replace(
            appointment,
            payment_status=payment_status,
            is_package_appointment=True,
            package_id=package_id,
        ))

    ctx_logger.info(
        f"Generated {len(sessions)} sessions from {first_date:%Y-%m-%d %H:%M} at {price_per_session:.2f} each"
    )
    return sessions
