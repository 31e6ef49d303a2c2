import logging
from datetime import date
from typing import Any, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud
from ..models.intake_form import REQUIRED_CONSENTS
from ..schemas.booking import (
    BookingCreate,
    BookingResponse,
    CancelRequest,
    CooldownStatus,
    DenyRequest,
    RescheduleRequest,
)
from ..schemas.intake import IntakeFormCreate, IntakeFormResponse
from ..services import booking_service
from ..utils import error_response
from ..utils.dates import utc_day_bounds, utcnow
from .dependencies import get_current_user_id, get_db

router = APIRouter(default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)
# main.py mounts this router at {API_PREFIX}/bookings


@router.get("", response_model=List[BookingResponse])
def list_bookings_for_day(
    *,
    db: Session = Depends(get_db),
    artist_id: str = Query(..., min_length=1),
    day: date = Query(..., alias="date"),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    """Active bookings of an artist on a UTC calendar day."""
    start, end = utc_day_bounds(day)
    return crud.booking.get_bookings_for_range(db, artist_id, start, end)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    *,
    db: Session = Depends(get_db),
    booking_in: BookingCreate,
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    """Create a ``pending`` booking for the signed-in client."""
    return booking_service.create_booking(db, booking_in, current_user_id)


@router.get("/appointments", response_model=List[BookingResponse])
def read_my_appointments(
    *,
    db: Session = Depends(get_db),
    role: Optional[Literal["client", "artist"]] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    return crud.booking.get_bookings_for_user(db, current_user_id, role=role, skip=skip, limit=limit)


@router.get("/cooldown", response_model=CooldownStatus)
def read_cooldown_status(
    *,
    db: Session = Depends(get_db),
    artist_id: str = Query(..., min_length=1),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    return booking_service.cooldown_status(db, current_user_id, artist_id)


@router.get("/{booking_id}", response_model=BookingResponse)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    return booking_service.get_for_participant(db, booking_id, current_user_id)


@router.post("/{booking_id}/accept", response_model=BookingResponse)
def accept_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    return booking_service.accept_booking(db, booking, current_user_id)


@router.post("/{booking_id}/deny", response_model=BookingResponse)
def deny_booking(
    booking_id: int,
    payload: Optional[DenyRequest] = None,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    reason = payload.reason if payload else None
    return booking_service.deny_booking(db, booking, current_user_id, reason=reason)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    payload: Optional[CancelRequest] = None,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    reason = payload.reason if payload else None
    return booking_service.cancel_booking(db, booking, current_user_id, reason=reason)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    return booking_service.complete_booking(db, booking, current_user_id)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
def reschedule_booking(
    booking_id: int,
    payload: RescheduleRequest,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    return booking_service.reschedule_booking(db, booking, current_user_id, payload)


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
def mark_no_show(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    return booking_service.mark_no_show(db, booking, current_user_id)


@router.post("/{booking_id}/intake", response_model=IntakeFormResponse, status_code=status.HTTP_201_CREATED)
def submit_intake_form(
    booking_id: int,
    payload: IntakeFormCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    """Client-only upsert of the booking's intake form."""
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    if current_user_id != booking.client_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the client can submit the intake form",
        )
    missing = {name: "required" for name in REQUIRED_CONSENTS if not getattr(payload, name)}
    if missing:
        raise error_response("All required consents must be accepted", missing)
    form = crud.crud_intake.upsert_intake(
        db,
        booking,
        payload,
        utcnow(),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    logger.info("Intake form stored for booking %s", booking.id)
    return form


@router.get("/{booking_id}/intake", response_model=IntakeFormResponse)
def read_intake_form(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Any:
    booking = booking_service.get_for_participant(db, booking_id, current_user_id)
    form = crud.crud_intake.get_by_booking(db, booking.id)
    if form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Intake form not found")
    return form
