from pydantic import BaseModel, Field, model_validator
from typing import Optional

from ..models.artist_policy import DepositMode


class ArtistPolicyUpdate(BaseModel):
    mode: Optional[DepositMode] = None
    amount_cents: Optional[int] = Field(default=None, ge=0)
    percent: Optional[float] = Field(default=None, ge=0, le=1)
    min_cents: Optional[int] = Field(default=None, ge=0)
    max_cents: Optional[int] = Field(default=None, ge=0)
    non_refundable: Optional[bool] = None
    cutoff_hours: Optional[int] = Field(default=None, ge=0, le=720)

    @model_validator(mode="after")
    def check_bounds(self) -> "ArtistPolicyUpdate":
        if self.min_cents is not None and self.max_cents is not None and self.min_cents > self.max_cents:
            raise ValueError("min_cents must not exceed max_cents")
        return self


class ArtistPolicyResponse(BaseModel):
    artist_id: str
    mode: DepositMode = DepositMode.PERCENT
    amount_cents: int = 5000
    percent: float = 0.2
    min_cents: int = 5000
    max_cents: int = 30000
    non_refundable: bool = True
    cutoff_hours: int = 48

    model_config = {
        "from_attributes": True
    }
