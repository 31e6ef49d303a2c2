from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from .. import models
from ..models.booking_status import ACTIVE_STATUSES, BookingStatus


class CRUDBooking:
    def get_booking(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return db.query(models.Booking).filter(models.Booking.id == booking_id).first()

    def get_bookings_for_range(
        self, db: Session, artist_id: str, start: datetime, end: datetime
    ) -> List[models.Booking]:
        """Active bookings of ``artist_id`` overlapping ``[start, end)``."""
        return (
            db.query(models.Booking)
            .filter(
                models.Booking.artist_id == artist_id,
                models.Booking.start_at < end,
                models.Booking.end_at > start,
                models.Booking.status.in_(ACTIVE_STATUSES),
            )
            .order_by(models.Booking.start_at.asc())
            .all()
        )

    def find_conflict(
        self,
        db: Session,
        artist_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> Optional[models.Booking]:
        q = db.query(models.Booking).filter(
            models.Booking.artist_id == artist_id,
            models.Booking.start_at < end,
            models.Booking.end_at > start,
            models.Booking.status.in_(ACTIVE_STATUSES),
        )
        if exclude_id is not None:
            q = q.filter(models.Booking.id != exclude_id)
        return q.first()

    def get_bookings_for_user(
        self,
        db: Session,
        user_id: str,
        role: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Booking]:
        q = db.query(models.Booking)
        if role == "artist":
            q = q.filter(models.Booking.artist_id == user_id)
        elif role == "client":
            q = q.filter(models.Booking.client_id == user_id)
        else:
            q = q.filter(
                (models.Booking.artist_id == user_id) | (models.Booking.client_id == user_id)
            )
        return q.order_by(models.Booking.start_at.asc()).offset(skip).limit(limit).all()

    def get_expired_checkouts(self, db: Session, now: datetime) -> List[models.Booking]:
        return (
            db.query(models.Booking)
            .filter(
                models.Booking.status == BookingStatus.AWAITING_PAYMENT,
                models.Booking.payment_expires_at != None,  # noqa: E711
                models.Booking.payment_expires_at <= now,
            )
            .all()
        )


booking = CRUDBooking()
