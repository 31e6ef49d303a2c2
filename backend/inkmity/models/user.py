import enum

from sqlalchemy import Column, Integer, String, Boolean

from .base import BaseModel
from .types import CaseInsensitiveEnum, JSONDict


class UserRole(str, enum.Enum):
    CLIENT = "client"
    ARTIST = "artist"


class User(BaseModel):
    """Local mirror of a Clerk account."""

    __tablename__ = "users"

    id            = Column(Integer, primary_key=True, index=True)
    clerk_id      = Column(String, unique=True, index=True, nullable=False)
    email         = Column(String, index=True, nullable=False)
    role          = Column(CaseInsensitiveEnum(UserRole, name="userrole"), default=UserRole.CLIENT, nullable=False)
    username      = Column(String, unique=True, index=True, nullable=False)
    username_slug = Column(String, index=True, nullable=True)
    first_name    = Column(String, nullable=True)
    last_name     = Column(String, nullable=True)
    profile       = Column(JSONDict, default=dict)
    is_active     = Column(Boolean, default=True)
