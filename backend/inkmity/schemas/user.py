from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..models.user import UserRole


class UserSync(BaseModel):
    email: str = Field(min_length=3)
    role: UserRole = UserRole.CLIENT
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile: Dict[str, Any] = Field(default_factory=dict)


class UserResponse(BaseModel):
    id: int
    clerk_id: str
    email: str
    role: UserRole
    username: str
    username_slug: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class DashboardResponse(BaseModel):
    user: UserResponse
    featured_artists: List[UserResponse]
