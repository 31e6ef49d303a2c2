from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models


def create_message(
    db: Session,
    sender_id: str,
    receiver_id: str,
    text: str,
    meta: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> models.Message:
    msg = models.Message(sender_id=sender_id, receiver_id=receiver_id, text=text, meta=meta or {})
    db.add(msg)
    if commit:
        db.commit()
        db.refresh(msg)
    return msg


def get_messages_for_user(db: Session, user_id: str) -> List[models.Message]:
    return (
        db.query(models.Message)
        .filter(or_(models.Message.sender_id == user_id, models.Message.receiver_id == user_id))
        .order_by(models.Message.created_at.asc(), models.Message.id.asc())
        .all()
    )


def get_deleted_markers(db: Session, user_id: str) -> Dict[str, datetime]:
    rows = (
        db.query(models.DeletedConversation)
        .filter(models.DeletedConversation.user_id == user_id)
        .all()
    )
    return {row.participant_id: row.deleted_at for row in rows}


def mark_conversation_deleted(
    db: Session, user_id: str, participant_id: str, now: datetime
) -> models.DeletedConversation:
    row = (
        db.query(models.DeletedConversation)
        .filter(
            models.DeletedConversation.user_id == user_id,
            models.DeletedConversation.participant_id == participant_id,
        )
        .first()
    )
    if row is None:
        row = models.DeletedConversation(user_id=user_id, participant_id=participant_id)
        db.add(row)
    row.deleted_at = now
    db.commit()
    db.refresh(row)
    return row
