from sqlalchemy import Column, Integer, DateTime, String, Text, Boolean, Index

from .base import BaseModel
from .booking_status import ACTIVE_STATUSES, AppointmentType, BookingStatus, CancelledBy
from .types import CaseInsensitiveEnum


class Booking(BaseModel):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_artist_start", "artist_id", "start_at"),
        Index("ix_bookings_client_start", "client_id", "start_at"),
    )

    id               = Column(Integer, primary_key=True, index=True)
    artist_id        = Column(String, nullable=False, index=True)
    client_id        = Column(String, nullable=False, index=True)
    service_id       = Column(String, nullable=True)
    start_at         = Column(DateTime, nullable=False, index=True)
    end_at           = Column(DateTime, nullable=False)
    note             = Column(Text, default="")
    appointment_type = Column(
        CaseInsensitiveEnum(AppointmentType, name="appointmenttype"),
        default=AppointmentType.TATTOO_SESSION,
        nullable=False,
    )
    status           = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    price_cents            = Column(Integer, default=0, nullable=False)
    deposit_required_cents = Column(Integer, default=0, nullable=False)
    deposit_paid_cents     = Column(Integer, default=0, nullable=False)
    deposit_forfeited      = Column(Boolean, default=False, nullable=False)

    payment_expires_at  = Column(DateTime, nullable=True, index=True)
    confirmed_at        = Column(DateTime, nullable=True)
    cancelled_at        = Column(DateTime, nullable=True)
    cancelled_by        = Column(CaseInsensitiveEnum(CancelledBy, name="cancelledby"), nullable=True)
    cancellation_reason = Column(String, nullable=True)
    completed_at        = Column(DateTime, nullable=True)
    rescheduled_at      = Column(DateTime, nullable=True)
    rescheduled_from    = Column(DateTime, nullable=True)
    rescheduled_by      = Column(String, nullable=True)
    no_show_marked_at   = Column(DateTime, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
