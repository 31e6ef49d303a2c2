import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..models.booking_status import AppointmentType, BookingStatus, CancelledBy
from ..schemas.booking import BookingCreate, CooldownStatus, RescheduleRequest
from ..utils.dates import hours_until, to_naive_utc, utcnow
from ..utils.redis_cache import invalidate_slot_cache
from ..utils.refund_policy import is_refund_eligible
from . import billing_service, stripe_gateway
from .deposit import compute_deposit_cents
from .errors import (
    BookingNotFound,
    CooldownActive,
    InvalidBooking,
    InvalidTransition,
    NotParticipant,
    SlotUnavailable,
)
from .lifecycle import transition
from .slots import DEFAULT_SLOT_MINUTES, clamp_slot_minutes, fits_availability

logger = logging.getLogger(__name__)

CONSULTATION_MINUTES = (15, 60, 30)  # min, max, default
SESSION_MINUTES = (30, 480)


def resolve_duration(
    appointment_type: AppointmentType,
    duration_minutes: Optional[int],
    slot_minutes: Optional[int] = None,
) -> int:
    if appointment_type == AppointmentType.CONSULTATION:
        low, high, default = CONSULTATION_MINUTES
        return max(low, min(high, int(duration_minutes or default)))
    low, high = SESSION_MINUTES
    default = clamp_slot_minutes(slot_minutes or DEFAULT_SLOT_MINUTES)
    return max(low, min(high, int(duration_minutes or default)))


def get_for_participant(db: Session, booking_id: int, actor_id: str) -> models.Booking:
    booking = crud.booking.get_booking(db, booking_id)
    if booking is None:
        raise BookingNotFound("Booking not found")
    if actor_id not in (booking.client_id, booking.artist_id):
        raise NotParticipant("Not a participant in this booking")
    return booking


def _role_of(booking: models.Booking, actor_id: str) -> CancelledBy:
    return CancelledBy.CLIENT if actor_id == booking.client_id else CancelledBy.ARTIST


def _counterparty(booking: models.Booking, actor_id: str) -> str:
    return booking.artist_id if actor_id == booking.client_id else booking.client_id


def _notify(db: Session, booking: models.Booking, actor_id: str, event: str, text: str) -> None:
    crud.crud_message.create_message(
        db,
        sender_id=actor_id,
        receiver_id=_counterparty(booking, actor_id),
        text=text,
        meta={"kind": "system", "booking_id": booking.id, "event": event},
        commit=False,
    )


def _check_cooldown(db: Session, client_id: str, artist_id: str, now: datetime) -> None:
    cooldown = crud.crud_cooldown.get_active_cooldown(db, client_id, artist_id, now)
    if cooldown is None:
        return
    hours_left = math.ceil((cooldown.expires_at - now).total_seconds() / 3600)
    raise CooldownActive(
        f"You must wait {hours_left} hours before booking with this artist again "
        "after cancelling or denying an appointment.",
        expires_at=cooldown.expires_at,
        hours_remaining=hours_left,
    )


def create_booking(
    db: Session, data: BookingCreate, actor_id: str, now: Optional[datetime] = None
) -> models.Booking:
    """Validate and insert a new ``pending`` booking for ``actor_id``."""
    now = now or utcnow()
    if data.client_id and data.client_id != actor_id:
        raise NotParticipant("client_id must match the signed-in user")
    start = to_naive_utc(data.start_at)
    if start <= now:
        raise InvalidBooking("start_at must be in the future")
    try:
        # 1) Lock the artist's calendar for the rest of this transaction
        crud.crud_availability.lock_artist_calendar(db, data.artist_id)
        availability = crud.crud_availability.get_availability(db, data.artist_id)

        # 2) Derive the end from the requested duration when not given
        if data.end_at is not None:
            end = to_naive_utc(data.end_at)
        else:
            minutes = resolve_duration(
                data.appointment_type,
                data.duration_minutes,
                availability.slot_minutes if availability else None,
            )
            end = start + timedelta(minutes=minutes)
        if end <= start:
            raise InvalidBooking("end must be after start")
        if data.artist_id == actor_id:
            raise InvalidBooking("You cannot book yourself")

        # 3) Cooldown, then calendar conflicts
        _check_cooldown(db, actor_id, data.artist_id, now)
        if crud.booking.find_conflict(db, data.artist_id, start, end) is not None:
            raise SlotUnavailable("Slot already booked")

        # 4) Deposit from the artist's policy
        policy = crud.crud_artist_policy.get_policy(db, data.artist_id)
        booking = models.Booking(
            artist_id=data.artist_id,
            client_id=actor_id,
            service_id=data.service_id,
            start_at=start,
            end_at=end,
            note=data.note or "",
            appointment_type=data.appointment_type,
            status=BookingStatus.PENDING,
            price_cents=data.price_cents,
            deposit_required_cents=compute_deposit_cents(policy, data.price_cents),
            deposit_paid_cents=0,
        )
        db.add(booking)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)
    invalidate_slot_cache(booking.artist_id)
    logger.info("Created booking %s for artist %s at %s", booking.id, booking.artist_id, booking.start_at)
    return booking


def _forfeits_deposit(booking: models.Booking, now: datetime) -> bool:
    late = hours_until(booking.start_at, now) < settings.LATE_CANCEL_HOURS
    return late and (booking.deposit_paid_cents or 0) > 0


def cancel_booking(
    db: Session,
    booking: models.Booking,
    actor_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.Booking:
    """Cancel on behalf of either participant.

    Late cancellations forfeit a paid deposit; a client cancel starts the
    re-booking cooldown. Platform fees are refunded inside the refund window
    unless the deposit was forfeited.
    """
    now = now or utcnow()
    if booking.status == BookingStatus.CANCELLED:
        return booking
    role = _role_of(booking, actor_id)
    transition(booking, BookingStatus.CANCELLED, now)
    forfeited = _forfeits_deposit(booking, now)
    if forfeited:
        booking.deposit_forfeited = True
    booking.cancelled_by = role
    booking.cancellation_reason = reason
    if role == CancelledBy.CLIENT:
        crud.crud_cooldown.upsert_cooldown(
            db, actor_id, booking.artist_id, now, settings.BOOKING_COOLDOWN_HOURS, booking_id=booking.id
        )
    crud.crud_billing.expire_pending_for_booking(db, booking.id)
    _notify(
        db,
        booking,
        actor_id,
        "cancelled",
        f"The appointment on {booking.start_at:%Y-%m-%d %H:%M} UTC was cancelled by the {role.value}."
        + (f" Reason: {reason}" if reason else ""),
    )
    db.commit()
    db.refresh(booking)
    invalidate_slot_cache(booking.artist_id)

    if not forfeited and is_refund_eligible(booking.start_at, now):
        try:
            billing_service.refund_fees(db, booking_id=booking.id, now=now)
        except stripe_gateway.PaymentGatewayError as exc:
            logger.error("Refund for cancelled booking %s failed: %s", booking.id, exc)
    return booking


def complete_booking(
    db: Session, booking: models.Booking, actor_id: str, now: Optional[datetime] = None
) -> models.Booking:
    now = now or utcnow()
    if booking.status == BookingStatus.COMPLETED:
        return booking
    transition(booking, BookingStatus.COMPLETED, now)
    db.commit()
    db.refresh(booking)
    return booking


def accept_booking(
    db: Session, booking: models.Booking, actor_id: str, now: Optional[datetime] = None
) -> models.Booking:
    now = now or utcnow()
    if actor_id != booking.artist_id:
        raise NotParticipant("Only the artist can accept this booking")
    if booking.status != BookingStatus.PENDING:
        raise InvalidTransition("Only pending bookings can be accepted", status=booking.status.value)
    transition(booking, BookingStatus.ACCEPTED, now)
    _notify(db, booking, actor_id, "accepted", f"Your appointment on {booking.start_at:%Y-%m-%d %H:%M} UTC was accepted.")
    db.commit()
    db.refresh(booking)
    return booking


def deny_booking(
    db: Session,
    booking: models.Booking,
    actor_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.Booking:
    now = now or utcnow()
    if booking.status != BookingStatus.PENDING:
        raise InvalidTransition("Only pending bookings can be denied", status=booking.status.value)
    role = _role_of(booking, actor_id)
    transition(booking, BookingStatus.DENIED, now)
    booking.cancellation_reason = reason
    if role == CancelledBy.CLIENT:
        crud.crud_cooldown.upsert_cooldown(
            db, actor_id, booking.artist_id, now, settings.BOOKING_COOLDOWN_HOURS, booking_id=booking.id
        )
    _notify(
        db,
        booking,
        actor_id,
        "denied",
        f"The appointment request for {booking.start_at:%Y-%m-%d %H:%M} UTC was declined."
        + (f" Reason: {reason}" if reason else ""),
    )
    db.commit()
    db.refresh(booking)
    invalidate_slot_cache(booking.artist_id)
    return booking


def reschedule_booking(
    db: Session,
    booking: models.Booking,
    actor_id: str,
    data: RescheduleRequest,
    now: Optional[datetime] = None,
) -> models.Booking:
    now = now or utcnow()
    if booking.status not in (BookingStatus.PENDING, BookingStatus.ACCEPTED, BookingStatus.BOOKED):
        raise InvalidTransition(
            f"Booking cannot be rescheduled while {booking.status.value}",
            status=booking.status.value,
        )
    new_start = to_naive_utc(data.start_at)
    if hours_until(new_start, now) < settings.MIN_RESCHEDULE_NOTICE_HOURS:
        raise InvalidBooking(
            f"Reschedules need at least {settings.MIN_RESCHEDULE_NOTICE_HOURS} hours notice"
        )
    if data.end_at is not None:
        new_end = to_naive_utc(data.end_at)
    else:
        new_end = new_start + (booking.end_at - booking.start_at)
    if new_end <= new_start:
        raise InvalidBooking("end must be after start")
    crud.crud_availability.lock_artist_calendar(db, booking.artist_id)
    if not fits_availability(db, booking.artist_id, new_start, new_end):
        raise InvalidBooking("Requested time is outside the artist's availability")
    if crud.booking.find_conflict(db, booking.artist_id, new_start, new_end, exclude_id=booking.id):
        raise SlotUnavailable("Slot already booked")

    if _forfeits_deposit(booking, now):
        booking.deposit_forfeited = True
    booking.rescheduled_from = booking.start_at
    booking.rescheduled_at = now
    booking.rescheduled_by = actor_id
    booking.start_at = new_start
    booking.end_at = new_end
    _notify(
        db,
        booking,
        actor_id,
        "rescheduled",
        f"The appointment was moved to {new_start:%Y-%m-%d %H:%M} UTC."
        + (f" Reason: {data.reason}" if data.reason else ""),
    )
    db.commit()
    db.refresh(booking)
    invalidate_slot_cache(booking.artist_id)
    logger.info("Rescheduled booking %s to %s", booking.id, new_start)
    return booking


def mark_no_show(
    db: Session, booking: models.Booking, actor_id: str, now: Optional[datetime] = None
) -> models.Booking:
    now = now or utcnow()
    if actor_id != booking.artist_id:
        raise NotParticipant("Only the artist can mark a no-show")
    if booking.start_at > now:
        raise InvalidBooking("Appointment has not started yet")
    transition(booking, BookingStatus.NO_SHOW, now)
    if (booking.deposit_paid_cents or 0) > 0:
        booking.deposit_forfeited = True
    db.commit()
    db.refresh(booking)
    return booking


def cooldown_status(
    db: Session, client_id: str, artist_id: str, now: Optional[datetime] = None
) -> CooldownStatus:
    now = now or utcnow()
    cooldown = crud.crud_cooldown.get_active_cooldown(db, client_id, artist_id, now)
    if cooldown is None:
        return CooldownStatus(active=False)
    hours_left = math.ceil((cooldown.expires_at - now).total_seconds() / 3600)
    return CooldownStatus(active=True, expires_at=cooldown.expires_at, hours_remaining=hours_left)


def expire_stale_checkouts(db: Session, now: Optional[datetime] = None) -> List[int]:
    """Expire ``awaiting_payment`` bookings whose checkout window has closed."""
    now = now or utcnow()
    expired: List[int] = []
    for booking in crud.booking.get_expired_checkouts(db, now):
        transition(booking, BookingStatus.EXPIRED, now)
        crud.crud_billing.expire_pending_for_booking(db, booking.id)
        expired.append(booking.id)
    if not expired:
        return expired
    db.commit()
    for artist_id in {b.artist_id for b in db.query(models.Booking).filter(models.Booking.id.in_(expired))}:
        invalidate_slot_cache(artist_id)
    logger.info("Expired %d unpaid bookings", len(expired))
    return expired
