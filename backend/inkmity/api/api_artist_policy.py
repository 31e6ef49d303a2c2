from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..crud import crud_artist_policy
from ..schemas.artist_policy import ArtistPolicyResponse, ArtistPolicyUpdate
from .dependencies import get_current_user_id, get_db

router = APIRouter(default_response_class=ORJSONResponse)


@router.get("/{artist_id}/policy", response_model=ArtistPolicyResponse)
def read_policy(artist_id: str, db: Session = Depends(get_db)) -> Any:
    policy = crud_artist_policy.get_policy(db, artist_id)
    if policy is None:
        return ArtistPolicyResponse(artist_id=artist_id)
    return policy


@router.put("/{artist_id}/policy", response_model=ArtistPolicyResponse)
def update_policy(
    artist_id: str,
    payload: ArtistPolicyUpdate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    if current_user_id != artist_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit your own policy",
        )
    return crud_artist_policy.upsert_policy(db, artist_id, payload)
