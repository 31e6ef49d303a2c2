from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from ..models.booking_status import AppointmentType, BookingStatus, CancelledBy


# The one wire shape for creating a booking; the HTTP client builds the same model.
class BookingCreate(BaseModel):
    artist_id: str = Field(min_length=1)
    # Must match the authenticated user when present
    client_id: Optional[str] = None
    service_id: Optional[str] = None
    start_at: datetime
    end_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    note: Optional[str] = Field(default="", max_length=2000)
    appointment_type: AppointmentType = AppointmentType.TATTOO_SESSION
    price_cents: int = Field(default=0, ge=0)

    @field_validator("appointment_type", mode="before")
    def lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class BookingResponse(BaseModel):
    id: int
    artist_id: str
    client_id: str
    service_id: Optional[str] = None
    start_at: datetime
    end_at: datetime
    note: Optional[str] = None
    appointment_type: AppointmentType
    status: BookingStatus
    price_cents: int = 0
    deposit_required_cents: int = 0
    deposit_paid_cents: int = 0
    deposit_forfeited: bool = False
    payment_expires_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[CancelledBy] = None
    cancellation_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    rescheduled_at: Optional[datetime] = None
    rescheduled_from: Optional[datetime] = None
    no_show_marked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class DenyRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class RescheduleRequest(BaseModel):
    start_at: datetime
    end_at: Optional[datetime] = None
    reason: Optional[str] = Field(default=None, max_length=500)


class CooldownStatus(BaseModel):
    active: bool
    expires_at: Optional[datetime] = None
    hours_remaining: int = 0
