import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..models.billing import BillingStatus, BillingType
from ..models.booking_status import BookingStatus
from ..schemas.billing import CheckoutResponse, RefundItem
from ..utils.dates import utcnow
from . import stripe_gateway
from .errors import BookingError, InvalidTransition, NotParticipant
from .lifecycle import confirm_booking, require_intake, transition

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Platform Fee"


def _checkout_urls(booking_id: int) -> tuple[str, str]:
    base = settings.APP_URL.rstrip("/")
    return (
        f"{base}/booking/{booking_id}?paid=1&session_id={{CHECKOUT_SESSION_ID}}",
        f"{base}/booking/{booking_id}?paid=0",
    )


def start_checkout(
    db: Session,
    booking: models.Booking,
    actor_id: str,
    label: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckoutResponse:
    """Begin payment for ``booking``.

    Idempotent while a checkout session is live: repeat calls return the
    same session. Zero-amount bookings are confirmed on the spot.
    """
    now = now or utcnow()
    if actor_id != booking.client_id:
        raise NotParticipant("Only the client can pay for this booking")

    if booking.status == BookingStatus.AWAITING_PAYMENT:
        open_billing = crud.crud_billing.get_open_checkout(db, booking.id, now)
        if open_billing is not None:
            logger.info("Reusing checkout session %s for booking %s", open_billing.stripe_checkout_session_id, booking.id)
            return CheckoutResponse(
                mode="redirect",
                booking_id=booking.id,
                billing_id=open_billing.id,
                session_id=open_billing.stripe_checkout_session_id,
                url=open_billing.checkout_url,
            )
        raise InvalidTransition("Checkout window has expired", status=booking.status.value)

    if booking.status not in (BookingStatus.PENDING, BookingStatus.ACCEPTED):
        raise InvalidTransition(
            f"Booking cannot be paid while {booking.status.value}",
            status=booking.status.value,
        )
    require_intake(db, booking)

    if booking.deposit_required_cents and booking.deposit_required_cents > 0:
        amount, billing_type = booking.deposit_required_cents, BillingType.DEPOSIT
    else:
        amount, billing_type = settings.PLATFORM_FEE_CENTS, BillingType.PLATFORM_FEE

    if amount <= 0:
        confirm_booking(db, booking, now)
        db.commit()
        logger.info("Booking %s confirmed without payment", booking.id)
        return CheckoutResponse(mode="free", booking_id=booking.id)

    billing = models.Billing(
        booking_id=booking.id,
        artist_id=booking.artist_id,
        client_id=booking.client_id,
        type=billing_type,
        amount_cents=amount,
        currency=settings.CURRENCY,
        status=BillingStatus.PENDING,
        meta={"label": label or DEFAULT_LABEL},
    )
    db.add(billing)
    db.commit()
    db.refresh(billing)

    expires = now + timedelta(minutes=settings.CHECKOUT_TTL_MINUTES)
    success_url, cancel_url = _checkout_urls(booking.id)
    try:
        session = stripe_gateway.create_checkout_session(
            amount_cents=amount,
            currency=settings.CURRENCY,
            product_name=label or DEFAULT_LABEL,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={
                "billingId": billing.id,
                "bookingId": booking.id,
                "type": billing_type.value,
            },
            idempotency_key=f"checkout-{billing.id}",
        )
    except stripe_gateway.PaymentGatewayError:
        billing.status = BillingStatus.FAILED
        db.commit()
        raise

    billing.stripe_checkout_session_id = session["id"]
    billing.checkout_url = session["url"]
    transition(booking, BookingStatus.AWAITING_PAYMENT, now)
    booking.payment_expires_at = expires
    db.commit()
    return CheckoutResponse(
        mode="redirect",
        booking_id=booking.id,
        billing_id=billing.id,
        session_id=session["id"],
        url=session["url"],
    )


def refund_fees(
    db: Session,
    booking_id: Optional[int] = None,
    billing_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[RefundItem]:
    """Refund paid platform fees; deposits are kept by the artist."""
    now = now or utcnow()
    refunds: List[RefundItem] = []
    for billing in crud.crud_billing.get_refundable_fees(db, booking_id=booking_id, billing_id=billing_id):
        refund = stripe_gateway.create_refund(
            billing.stripe_payment_intent_id,
            idempotency_key=f"refund-{billing.id}",
        )
        billing.stripe_refund_ids = list(billing.stripe_refund_ids or []) + [refund["id"]]
        billing.status = BillingStatus.REFUNDED
        billing.refunded_at = now
        db.commit()
        logger.info("Refunded billing %s (%s)", billing.id, refund["id"])
        refunds.append(RefundItem(billing_id=billing.id, refund_id=refund["id"]))
    return refunds


def _find_billing(db: Session, session: Dict[str, Any]) -> Optional[models.Billing]:
    metadata = session.get("metadata") or {}
    billing_id = metadata.get("billingId")
    if billing_id and str(billing_id).isdigit():
        billing = crud.crud_billing.get_billing(db, int(billing_id))
        if billing is not None:
            return billing
    if session.get("id"):
        return crud.crud_billing.get_by_session_id(db, session["id"])
    return None


def handle_checkout_completed(
    db: Session, session: Dict[str, Any], now: Optional[datetime] = None
) -> Optional[models.Billing]:
    """Record a paid checkout session. Repeat deliveries are no-ops."""
    now = now or utcnow()
    billing = _find_billing(db, session)
    if billing is None:
        logger.warning("Checkout session %s has no matching billing", session.get("id"))
        return None
    if billing.status == BillingStatus.PAID:
        return billing

    billing.status = BillingStatus.PAID
    billing.paid_at = now
    billing.stripe_payment_intent_id = session.get("payment_intent") or billing.stripe_payment_intent_id
    booking = crud.booking.get_booking(db, billing.booking_id)
    if booking is not None:
        if billing.type == BillingType.DEPOSIT:
            booking.deposit_paid_cents = booking.deposit_required_cents
        if booking.status == BookingStatus.AWAITING_PAYMENT:
            try:
                confirm_booking(db, booking, now)
            except BookingError as exc:
                logger.error("Could not confirm booking %s after payment: %s", booking.id, exc)
        elif booking.status == BookingStatus.EXPIRED:
            logger.warning("Payment for expired booking %s (billing %s)", booking.id, billing.id)
    db.commit()
    db.refresh(billing)
    return billing


def handle_checkout_expired(db: Session, session: Dict[str, Any]) -> Optional[models.Billing]:
    billing = _find_billing(db, session)
    if billing is not None and billing.status == BillingStatus.PENDING:
        billing.status = BillingStatus.EXPIRED
        db.commit()
    return billing
