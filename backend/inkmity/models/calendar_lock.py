from sqlalchemy import Column, String

from .base import BaseModel


class CalendarLock(BaseModel):
    """One row per artist, locked while bookings for that artist are written.

    Exists independently of ``Availability`` so artists on default opening
    hours are serialized as well.
    """

    __tablename__ = "calendar_locks"

    artist_id = Column(String, primary_key=True)
