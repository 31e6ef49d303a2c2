from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional


class CheckoutRequest(BaseModel):
    booking_id: int
    label: Optional[str] = Field(default=None, max_length=120)


class CheckoutResponse(BaseModel):
    """``mode="free"`` means nothing was charged and the booking is confirmed."""

    mode: Literal["redirect", "free"]
    booking_id: int
    billing_id: Optional[int] = None
    session_id: Optional[str] = None
    url: Optional[str] = None


class RefundRequest(BaseModel):
    booking_id: Optional[int] = None
    billing_id: Optional[int] = None

    @model_validator(mode="after")
    def require_target(self) -> "RefundRequest":
        if self.booking_id is None and self.billing_id is None:
            raise ValueError("booking_id or billing_id is required")
        return self


class RefundItem(BaseModel):
    billing_id: int
    refund_id: str


class RefundResponse(BaseModel):
    ok: bool = True
    refunds: List[RefundItem] = []
