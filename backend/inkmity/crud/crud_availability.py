from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas


def get_availability(db: Session, artist_id: str) -> Optional[models.Availability]:
    return db.query(models.Availability).filter(models.Availability.artist_id == artist_id).first()


def lock_artist_calendar(db: Session, artist_id: str) -> models.CalendarLock:
    """Take the artist's calendar row lock for the current transaction.

    Serializes concurrent booking writes for one artist on backends that
    support ``SELECT ... FOR UPDATE``. The row is created on first use, so
    call this before any other writes in the transaction: losing the insert
    race rolls the transaction back.
    """
    query = (
        db.query(models.CalendarLock)
        .filter(models.CalendarLock.artist_id == artist_id)
        .with_for_update()
    )
    row = query.first()
    if row is None:
        db.add(models.CalendarLock(artist_id=artist_id))
        try:
            db.flush()
        except IntegrityError:
            # created concurrently by another transaction
            db.rollback()
        row = query.first()
    return row


def upsert_availability(
    db: Session, artist_id: str, data: schemas.AvailabilityUpsert
) -> models.Availability:
    row = get_availability(db, artist_id)
    if row is None:
        row = models.Availability(artist_id=artist_id)
        db.add(row)
    payload = data.model_dump()
    row.timezone = payload["timezone"]
    row.slot_minutes = payload["slot_minutes"]
    row.weekly = payload["weekly"]
    row.exceptions = payload["exceptions"]
    db.commit()
    db.refresh(row)
    return row
