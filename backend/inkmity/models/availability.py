from sqlalchemy import Column, Integer, String

from .base import BaseModel
from .types import JSONDict

WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class Availability(BaseModel):
    """Weekly opening hours of an artist.

    ``weekly`` maps ``sun``..``sat`` to lists of ``{"start": "HH:MM", "end": "HH:MM"}``
    and ``exceptions`` maps ``YYYY-MM-DD`` to the same range lists. Times are
    wall-clock times in ``timezone``.
    """

    __tablename__ = "availabilities"

    id           = Column(Integer, primary_key=True, index=True)
    artist_id    = Column(String, nullable=False, unique=True, index=True)
    timezone     = Column(String, nullable=False, default="America/New_York")
    slot_minutes = Column(Integer, nullable=False, default=60)
    weekly       = Column(JSONDict, default=dict)
    exceptions   = Column(JSONDict, default=dict)
