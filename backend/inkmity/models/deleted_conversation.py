from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, String, UniqueConstraint

from .base import BaseModel


class DeletedConversation(BaseModel):
    """Per-user soft delete of a conversation thread."""

    __tablename__ = "deleted_conversations"
    __table_args__ = (UniqueConstraint("user_id", "participant_id", name="uq_deleted_conversation"),)

    id             = Column(Integer, primary_key=True, index=True)
    user_id        = Column(String, nullable=False, index=True)
    participant_id = Column(String, nullable=False, index=True)
    deleted_at     = Column(DateTime, nullable=False, default=datetime.utcnow)
