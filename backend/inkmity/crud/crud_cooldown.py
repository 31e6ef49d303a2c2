from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .. import models


def get_active_cooldown(
    db: Session, user_id: str, artist_id: str, now: datetime
) -> Optional[models.BookingCooldown]:
    return (
        db.query(models.BookingCooldown)
        .filter(
            models.BookingCooldown.user_id == user_id,
            models.BookingCooldown.artist_id == artist_id,
            models.BookingCooldown.expires_at > now,
        )
        .first()
    )


def upsert_cooldown(
    db: Session,
    user_id: str,
    artist_id: str,
    now: datetime,
    hours: int,
    booking_id: Optional[int] = None,
) -> models.BookingCooldown:
    """Start (or restart) the cooldown for the pair. Caller commits."""
    row = (
        db.query(models.BookingCooldown)
        .filter(
            models.BookingCooldown.user_id == user_id,
            models.BookingCooldown.artist_id == artist_id,
        )
        .first()
    )
    if row is None:
        row = models.BookingCooldown(user_id=user_id, artist_id=artist_id)
        db.add(row)
    row.booking_id = booking_id
    row.cancelled_at = now
    row.expires_at = now + timedelta(hours=hours)
    return row
