from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class MessageCreate(BaseModel):
    receiver_id: str = Field(min_length=1)
    text: str = Field(min_length=1, max_length=5000)
    meta: Dict[str, Any] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    id: int
    sender_id: str
    receiver_id: str
    text: str
    meta: Dict[str, Any] = {}
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


class ConversationResponse(BaseModel):
    participant_id: str
    username: Optional[str] = None
    messages: List[MessageResponse]
    last_message_at: datetime
