"""Booking state machine.

Every status change goes through :func:`transition`; confirming a tattoo
session additionally needs a complete intake form.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet

from sqlalchemy.orm import Session

from .. import crud, models
from ..models.booking_status import AppointmentType, BookingStatus
from .errors import IntakeRequired, InvalidTransition

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.AWAITING_PAYMENT,
        BookingStatus.BOOKED,
        BookingStatus.ACCEPTED,
        BookingStatus.CANCELLED,
        BookingStatus.DENIED,
    }),
    BookingStatus.ACCEPTED: frozenset({
        BookingStatus.AWAITING_PAYMENT,
        BookingStatus.BOOKED,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.AWAITING_PAYMENT: frozenset({
        BookingStatus.BOOKED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    }),
    BookingStatus.BOOKED: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
}

_STAMPS = {
    BookingStatus.BOOKED: "confirmed_at",
    BookingStatus.COMPLETED: "completed_at",
    BookingStatus.CANCELLED: "cancelled_at",
    BookingStatus.NO_SHOW: "no_show_marked_at",
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(BookingStatus(current), frozenset())


def transition(booking: models.Booking, target: BookingStatus, now: datetime) -> models.Booking:
    """Move ``booking`` to ``target`` or raise :class:`InvalidTransition`. Caller commits."""
    current = BookingStatus(booking.status)
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot move booking from {current.value} to {target.value}",
            status=current.value,
        )
    booking.status = target
    stamp = _STAMPS.get(target)
    if stamp:
        setattr(booking, stamp, now)
    logger.info("Booking %s %s -> %s", booking.id, current.value, target.value)
    return booking


def require_intake(db: Session, booking: models.Booking) -> None:
    if booking.appointment_type != AppointmentType.TATTOO_SESSION:
        return
    form = crud.crud_intake.get_by_booking(db, booking.id)
    if form is None or not form.consents_complete:
        raise IntakeRequired("An intake form with all required consents must be submitted first")


def confirm_booking(db: Session, booking: models.Booking, now: datetime) -> models.Booking:
    """Move a booking to ``booked``. Caller commits."""
    require_intake(db, booking)
    transition(booking, BookingStatus.BOOKED, now)
    booking.payment_expires_at = None
    return booking
