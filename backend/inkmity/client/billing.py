from typing import Optional

from ..schemas.billing import CheckoutResponse, RefundResponse
from .http import ApiClient

DEFAULT_LABEL = "Platform Fee"


async def start_checkout(api: ApiClient, booking_id: int, label: Optional[str] = None) -> CheckoutResponse:
    data = await api.post(
        "/api/billing/checkout",
        json={"booking_id": booking_id, "label": label or DEFAULT_LABEL},
    )
    return CheckoutResponse.model_validate(data)


async def refund_by_booking(api: ApiClient, booking_id: int) -> RefundResponse:
    return RefundResponse.model_validate(
        await api.post("/api/billing/refund", json={"booking_id": booking_id})
    )
