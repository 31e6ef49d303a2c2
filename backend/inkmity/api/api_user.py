import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..crud import crud_user
from ..models.user import User
from ..schemas.user import DashboardResponse, UserResponse, UserSync
from ..utils.slug import generate_unique_username, slugify_username
from ..utils.validation import normalize_email, validate_email
from ..utils import error_response
from .dependencies import get_current_user, get_current_user_id, get_db

router = APIRouter(default_response_class=ORJSONResponse)
dashboard_router = APIRouter(default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)

FEATURED_ARTIST_LIMIT = 5


def _display_name(data: UserSync) -> str:
    full = f"{data.first_name or ''} {data.last_name or ''}".strip()
    if full:
        return full
    return data.email.split("@")[0] or "user"


@router.post("/sync", response_model=UserResponse)
def sync_user(
    payload: UserSync,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    """Create or update the local mirror of the caller's Clerk account."""
    email = normalize_email(payload.email)
    if not validate_email(email):
        raise error_response("Invalid email", {"email": "invalid"})

    user = crud_user.get_by_clerk_id(db, current_user_id)
    is_new = user is None
    if is_new:
        # Added to the session only once username is set; it is NOT NULL
        user = User(clerk_id=current_user_id, role=payload.role)
    elif "role" in payload.model_fields_set:
        user.role = payload.role

    wanted = slugify_username(payload.username or "") if payload.username else ""
    if wanted and wanted != user.username:
        user.username = generate_unique_username(
            wanted, lambda name: crud_user.username_taken(db, name, exclude_clerk_id=current_user_id)
        )
    elif not user.username:
        user.username = generate_unique_username(
            _display_name(payload),
            lambda name: crud_user.username_taken(db, name, exclude_clerk_id=current_user_id),
        )
    user.username_slug = slugify_username(user.username)
    user.email = email
    user.first_name = payload.first_name
    user.last_name = payload.last_name
    if payload.profile:
        user.profile = {**(user.profile or {}), **payload.profile}
    if is_new:
        db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Synced user %s as %s", current_user_id, user.username)
    return user


@router.get("/me", response_model=UserResponse)
def read_me(current_user: User = Depends(get_current_user)) -> Any:
    return current_user


@dashboard_router.get("", response_model=DashboardResponse)
def read_dashboard(
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    user = crud_user.get_by_clerk_id(db, current_user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    featured = [
        a for a in crud_user.get_featured_artists(db, limit=FEATURED_ARTIST_LIMIT + 1)
        if a.clerk_id != current_user_id
    ][:FEATURED_ARTIST_LIMIT]
    return DashboardResponse(
        user=UserResponse.model_validate(user),
        featured_artists=[UserResponse.model_validate(a) for a in featured],
    )
