from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from .. import models
from ..models.user import UserRole


def get_by_clerk_id(db: Session, clerk_id: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.clerk_id == clerk_id).first()


def username_taken(db: Session, username: str, exclude_clerk_id: Optional[str] = None) -> bool:
    q = db.query(models.User.id).filter(models.User.username == username)
    if exclude_clerk_id:
        q = q.filter(models.User.clerk_id != exclude_clerk_id)
    return q.first() is not None


def get_usernames(db: Session, clerk_ids: Iterable[str]) -> Dict[str, str]:
    ids = list(set(clerk_ids))
    if not ids:
        return {}
    rows = db.query(models.User.clerk_id, models.User.username).filter(models.User.clerk_id.in_(ids)).all()
    return {clerk_id: username for clerk_id, username in rows}


def get_featured_artists(db: Session, limit: int = 5) -> List[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.role == UserRole.ARTIST, models.User.is_active == True)  # noqa: E712
        .order_by(models.User.created_at.desc(), models.User.id.desc())
        .limit(limit)
        .all()
    )
