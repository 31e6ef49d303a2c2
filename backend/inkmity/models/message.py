from sqlalchemy import Column, Integer, String, Text, Index

from .base import BaseModel
from .types import JSONDict


class Message(BaseModel):
    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_pair", "sender_id", "receiver_id"),)

    id          = Column(Integer, primary_key=True, index=True)
    sender_id   = Column(String, nullable=False, index=True)
    receiver_id = Column(String, nullable=False, index=True)
    text        = Column(Text, nullable=False)
    # {"kind": "system", "booking_id": 12, "event": "cancelled"} for lifecycle notices
    meta        = Column(JSONDict, default=dict)
