from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, String, Text, Boolean, ForeignKey

from .base import BaseModel
from .types import JSONDict

REQUIRED_CONSENTS = (
    "age_verification",
    "health_disclosure",
    "aftercare_instructions",
    "deposit_policy",
    "cancellation_policy",
)


class IntakeForm(BaseModel):
    __tablename__ = "intake_forms"

    id                = Column(Integer, primary_key=True, index=True)
    booking_id        = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, nullable=False)
    client_id         = Column(String, nullable=False, index=True)
    artist_id         = Column(String, nullable=False, index=True)
    health_info       = Column(JSONDict, default=dict)
    tattoo_details    = Column(JSONDict, default=dict)
    emergency_contact = Column(JSONDict, default=dict)

    age_verification       = Column(Boolean, default=False, nullable=False)
    health_disclosure      = Column(Boolean, default=False, nullable=False)
    aftercare_instructions = Column(Boolean, default=False, nullable=False)
    deposit_policy         = Column(Boolean, default=False, nullable=False)
    cancellation_policy    = Column(Boolean, default=False, nullable=False)
    photo_release          = Column(Boolean, default=False, nullable=False)

    additional_notes = Column(Text, default="")
    submitted_at     = Column(DateTime, default=datetime.utcnow, nullable=False)
    ip_address       = Column(String, nullable=True)
    user_agent       = Column(String, nullable=True)

    @property
    def consents_complete(self) -> bool:
        return all(bool(getattr(self, name)) for name in REQUIRED_CONSENTS)
