import enum

from sqlalchemy import Column, Integer, String, Float, Boolean

from .base import BaseModel
from .types import CaseInsensitiveEnum


class DepositMode(str, enum.Enum):
    FLAT = "flat"
    PERCENT = "percent"


class ArtistPolicy(BaseModel):
    __tablename__ = "artist_policies"

    id             = Column(Integer, primary_key=True, index=True)
    artist_id      = Column(String, nullable=False, unique=True, index=True)
    mode           = Column(CaseInsensitiveEnum(DepositMode, name="depositmode"), default=DepositMode.PERCENT, nullable=False)
    amount_cents   = Column(Integer, default=5000, nullable=False)
    percent        = Column(Float, default=0.2, nullable=False)
    min_cents      = Column(Integer, default=5000, nullable=False)
    max_cents      = Column(Integer, default=30000, nullable=False)
    non_refundable = Column(Boolean, default=True, nullable=False)
    cutoff_hours   = Column(Integer, default=48, nullable=False)
