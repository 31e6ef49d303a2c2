from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .. import models, schemas


def get_by_booking(db: Session, booking_id: int) -> Optional[models.IntakeForm]:
    return db.query(models.IntakeForm).filter(models.IntakeForm.booking_id == booking_id).first()


def upsert_intake(
    db: Session,
    booking: models.Booking,
    data: schemas.IntakeFormCreate,
    now: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> models.IntakeForm:
    form = get_by_booking(db, booking.id)
    if form is None:
        form = models.IntakeForm(
            booking_id=booking.id,
            client_id=booking.client_id,
            artist_id=booking.artist_id,
        )
        db.add(form)
    for key, value in data.model_dump().items():
        setattr(form, key, value)
    form.submitted_at = now
    form.ip_address = ip_address
    form.user_agent = user_agent
    db.commit()
    db.refresh(form)
    return form
