from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..models.billing import BillingStatus, BillingType


def get_billing(db: Session, billing_id: int) -> Optional[models.Billing]:
    return db.query(models.Billing).filter(models.Billing.id == billing_id).first()


def get_by_session_id(db: Session, session_id: str) -> Optional[models.Billing]:
    return (
        db.query(models.Billing)
        .filter(models.Billing.stripe_checkout_session_id == session_id)
        .first()
    )


def get_open_checkout(db: Session, booking_id: int, now: datetime) -> Optional[models.Billing]:
    """A pending billing row with a live checkout session, if one exists."""
    booking = db.query(models.Booking).filter(models.Booking.id == booking_id).first()
    if booking is None or booking.payment_expires_at is None or booking.payment_expires_at <= now:
        return None
    return (
        db.query(models.Billing)
        .filter(
            models.Billing.booking_id == booking_id,
            models.Billing.status == BillingStatus.PENDING,
            models.Billing.stripe_checkout_session_id != None,  # noqa: E711
        )
        .order_by(models.Billing.id.desc())
        .first()
    )


def get_refundable_fees(
    db: Session, booking_id: Optional[int] = None, billing_id: Optional[int] = None
) -> List[models.Billing]:
    """Paid platform fees with a payment intent. Deposits are never refunded."""
    q = db.query(models.Billing).filter(
        models.Billing.type == BillingType.PLATFORM_FEE,
        models.Billing.status == BillingStatus.PAID,
        models.Billing.stripe_payment_intent_id != None,  # noqa: E711
    )
    if billing_id is not None:
        q = q.filter(models.Billing.id == billing_id)
    if booking_id is not None:
        q = q.filter(models.Billing.booking_id == booking_id)
    return q.all()


def expire_pending_for_booking(db: Session, booking_id: int) -> int:
    """Mark pending billings of a booking expired. Caller commits."""
    rows = (
        db.query(models.Billing)
        .filter(
            models.Billing.booking_id == booking_id,
            models.Billing.status == BillingStatus.PENDING,
        )
        .all()
    )
    for row in rows:
        row.status = BillingStatus.EXPIRED
    return len(rows)
