import enum

from sqlalchemy import Column, Integer, DateTime, String, ForeignKey

from .base import BaseModel
from .types import CaseInsensitiveEnum, JSONDict, JSONList


class BillingType(str, enum.Enum):
    PLATFORM_FEE = "platform_fee"
    DEPOSIT = "deposit"
    FINAL_PAYMENT = "final_payment"


class BillingStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"
    EXPIRED = "expired"


class Billing(BaseModel):
    """One charge attempt against a booking."""

    __tablename__ = "billings"

    id           = Column(Integer, primary_key=True, index=True)
    booking_id   = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    artist_id    = Column(String, nullable=False, index=True)
    client_id    = Column(String, nullable=False, index=True)
    type         = Column(CaseInsensitiveEnum(BillingType, name="billingtype"), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    currency     = Column(String(3), default="usd", nullable=False)
    status       = Column(
        CaseInsensitiveEnum(BillingStatus, name="billingstatus"),
        default=BillingStatus.PENDING,
        nullable=False,
        index=True,
    )

    stripe_checkout_session_id = Column(String, nullable=True, index=True)
    checkout_url               = Column(String, nullable=True)
    stripe_payment_intent_id   = Column(String, nullable=True, index=True)
    stripe_charge_id           = Column(String, nullable=True)
    stripe_refund_ids          = Column(JSONList, default=list)
    receipt_url                = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    meta                       = Column("metadata", JSONDict, default=dict)

    paid_at     = Column(DateTime, nullable=True)
    refunded_at = Column(DateTime, nullable=True)
