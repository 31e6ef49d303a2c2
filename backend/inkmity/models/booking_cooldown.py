from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, String, UniqueConstraint

from .base import BaseModel


class BookingCooldown(BaseModel):
    """Blocks a client from re-booking an artist until ``expires_at``."""

    __tablename__ = "booking_cooldowns"
    __table_args__ = (UniqueConstraint("user_id", "artist_id", name="uq_cooldown_user_artist"),)

    id           = Column(Integer, primary_key=True, index=True)
    user_id      = Column(String, nullable=False, index=True)
    artist_id    = Column(String, nullable=False, index=True)
    booking_id   = Column(Integer, nullable=True)
    cancelled_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    expires_at   = Column(DateTime, nullable=False, index=True)

    def is_active(self, now: datetime) -> bool:
        return now < self.expires_at
