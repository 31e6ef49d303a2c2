import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud
from ..schemas.billing import CheckoutRequest, CheckoutResponse, RefundRequest, RefundResponse
from ..services import billing_service, booking_service, stripe_gateway
from ..utils import error_response
from .dependencies import get_current_user_id, get_db

router = APIRouter(default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


@router.post("/checkout", response_model=CheckoutResponse)
def start_checkout(
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    """Start (or resume) payment for a booking.

    Returns ``mode="redirect"`` with the hosted checkout URL, or
    ``mode="free"`` when nothing is owed and the booking is already confirmed.
    """
    booking = booking_service.get_for_participant(db, payload.booking_id, current_user_id)
    try:
        return billing_service.start_checkout(db, booking, current_user_id, label=payload.label)
    except stripe_gateway.PaymentGatewayError as exc:
        logger.error("Checkout for booking %s failed: %s", booking.id, exc)
        raise error_response("Payment initialization failed", {}, status.HTTP_502_BAD_GATEWAY)


@router.post("/refund", response_model=RefundResponse)
def refund(
    payload: RefundRequest,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking_id = payload.booking_id
    if booking_id is None:
        billing = crud.crud_billing.get_billing(db, payload.billing_id)
        if billing is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Billing not found")
        booking_id = billing.booking_id
    booking_service.get_for_participant(db, booking_id, current_user_id)
    try:
        refunds = billing_service.refund_fees(db, booking_id=booking_id, billing_id=payload.billing_id)
    except stripe_gateway.PaymentGatewayError as exc:
        logger.error("Refund for booking %s failed: %s", booking_id, exc)
        raise error_response("Refund failed", {}, status.HTTP_502_BAD_GATEWAY)
    return RefundResponse(ok=True, refunds=refunds)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    stripe_signature: Optional[str] = Header(default=None),
):
    """Handle Stripe events.

    - Verifies the ``Stripe-Signature`` header against STRIPE_WEBHOOK_SECRET.
    - ``checkout.session.completed`` marks the billing paid and confirms the booking.
    - ``checkout.session.expired`` expires the pending billing.
    - Idempotent: repeated deliveries return ``{"received": true}``.
    """
    raw = await request.body()
    try:
        event = stripe_gateway.construct_event(raw, stripe_signature)
    except stripe_gateway.WebhookSignatureError as exc:
        logger.warning("Stripe webhook rejected: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    event_type = event.get("type")
    session = (event.get("data") or {}).get("object") or {}
    if event_type == "checkout.session.completed":
        billing_service.handle_checkout_completed(db, session)
    elif event_type == "checkout.session.expired":
        billing_service.handle_checkout_expired(db, session)
    else:
        logger.debug("Ignoring Stripe event %s", event_type)
    return {"received": True}
