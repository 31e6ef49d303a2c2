import logging
from datetime import date
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from ..crud import crud_availability
from ..schemas.availability import AvailabilityResponse, AvailabilityUpsert, Slot
from ..services import slots as slot_service
from ..utils.redis_cache import invalidate_slot_cache
from .dependencies import get_current_user_id, get_db

router = APIRouter(default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


@router.get("/{artist_id}", response_model=AvailabilityResponse)
def read_availability(artist_id: str, db: Session = Depends(get_db)) -> Any:
    """Saved weekly hours, or the default 10:00-22:00 schedule."""
    row = crud_availability.get_availability(db, artist_id)
    if row is None:
        ranges = slot_service.DEFAULT_OPEN_RANGES
        return AvailabilityResponse(
            artist_id=artist_id,
            slot_minutes=slot_service.DEFAULT_SLOT_MINUTES,
            weekly={day: ranges for day in ("sun", "mon", "tue", "wed", "thu", "fri", "sat")},
        )
    return row


@router.put("/{artist_id}", response_model=AvailabilityResponse)
def upsert_availability(
    artist_id: str,
    payload: AvailabilityUpsert,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    if current_user_id != artist_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit your own availability",
        )
    row = crud_availability.upsert_availability(db, artist_id, payload)
    invalidate_slot_cache(artist_id)
    logger.info("Availability updated for artist %s", artist_id)
    return row


@router.get("/{artist_id}/slots", response_model=List[Slot])
def list_slots(
    artist_id: str,
    day: date = Query(..., alias="date"),
    duration_minutes: Optional[int] = Query(None, ge=5, le=480),
    db: Session = Depends(get_db),
) -> Any:
    return slot_service.get_slots(db, artist_id, day, duration_minutes)
