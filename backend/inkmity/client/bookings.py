from datetime import date
from typing import List, Optional

from ..schemas.availability import Slot
from ..schemas.booking import BookingCreate, BookingResponse
from .http import ApiClient


async def list_bookings_for_day(api: ApiClient, artist_id: str, day: date) -> List[BookingResponse]:
    data = await api.get("/api/bookings", params={"artist_id": artist_id, "date": day.isoformat()})
    return [BookingResponse.model_validate(item) for item in data or []]


async def get_booking(api: ApiClient, booking_id: int) -> BookingResponse:
    return BookingResponse.model_validate(await api.get(f"/api/bookings/{booking_id}"))


async def list_slots(
    api: ApiClient, artist_id: str, day: date, duration_minutes: Optional[int] = None
) -> List[Slot]:
    data = await api.get(
        f"/api/availability/{artist_id}/slots",
        params={"date": day.isoformat(), "duration_minutes": duration_minutes},
    )
    return [Slot.model_validate(item) for item in data or []]


async def create_booking(api: ApiClient, booking: BookingCreate) -> BookingResponse:
    data = await api.post("/api/bookings", json=booking.model_dump(mode="json", exclude_none=True))
    return BookingResponse.model_validate(data)


async def cancel_booking(api: ApiClient, booking_id: int, reason: Optional[str] = None) -> BookingResponse:
    body = {"reason": reason} if reason else None
    return BookingResponse.model_validate(await api.post(f"/api/bookings/{booking_id}/cancel", json=body))


async def complete_booking(api: ApiClient, booking_id: int) -> BookingResponse:
    return BookingResponse.model_validate(await api.post(f"/api/bookings/{booking_id}/complete"))
