from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime


class IntakeFormCreate(BaseModel):
    health_info: Dict[str, Any] = Field(default_factory=dict)
    tattoo_details: Dict[str, Any] = Field(default_factory=dict)
    emergency_contact: Dict[str, Any] = Field(default_factory=dict)
    age_verification: bool = False
    health_disclosure: bool = False
    aftercare_instructions: bool = False
    deposit_policy: bool = False
    cancellation_policy: bool = False
    photo_release: bool = False
    additional_notes: Optional[str] = Field(default="", max_length=5000)


class IntakeFormResponse(IntakeFormCreate):
    id: int
    booking_id: int
    client_id: str
    artist_id: str
    submitted_at: datetime

    model_config = {
        "from_attributes": True
    }
