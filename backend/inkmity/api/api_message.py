import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..crud import crud_message, crud_user
from ..schemas.message import ConversationResponse, MessageCreate, MessageResponse
from ..utils.dates import utcnow
from .dependencies import get_current_user_id, get_db

router = APIRouter(default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


@router.get("/conversations", response_model=List[ConversationResponse])
def list_conversations(
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    """Messages grouped by the other participant, newest thread first.

    History at or before the caller's delete marker for a thread is hidden;
    the other participant still sees it.
    """
    deleted = crud_message.get_deleted_markers(db, current_user_id)
    threads: Dict[str, List] = {}
    for msg in crud_message.get_messages_for_user(db, current_user_id):
        other = msg.receiver_id if msg.sender_id == current_user_id else msg.sender_id
        cutoff = deleted.get(other)
        if cutoff is not None and msg.created_at <= cutoff:
            continue
        threads.setdefault(other, []).append(msg)

    usernames = crud_user.get_usernames(db, threads.keys())
    conversations = [
        ConversationResponse(
            participant_id=other,
            username=usernames.get(other),
            messages=[MessageResponse.model_validate(m) for m in msgs],
            last_message_at=msgs[-1].created_at,
        )
        for other, msgs in threads.items()
    ]
    conversations.sort(key=lambda c: c.last_message_at, reverse=True)
    return conversations


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    if payload.receiver_id == current_user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot message yourself")
    meta = {k: v for k, v in payload.meta.items() if k != "kind"}
    return crud_message.create_message(db, current_user_id, payload.receiver_id, payload.text, meta)


@router.delete("/conversations/{participant_id}")
def delete_conversation(
    participant_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    marker = crud_message.mark_conversation_deleted(db, current_user_id, participant_id, utcnow())
    logger.info("User %s hid conversation with %s", current_user_id, participant_id)
    return {"ok": True, "deleted_at": marker.deleted_at}
