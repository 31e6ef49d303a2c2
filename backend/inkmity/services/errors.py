"""Domain errors raised by the booking and billing services.

Each carries the HTTP status and machine-readable code the API returns; the
application registers one handler for the whole hierarchy.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class BookingError(Exception):
    status_code = 400
    code = "booking_error"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        for key, value in self.extra.items():
            detail[key] = value.isoformat() if isinstance(value, datetime) else value
        return detail


class InvalidBooking(BookingError):
    status_code = 400
    code = "invalid_request"


class BookingNotFound(BookingError):
    status_code = 404
    code = "not_found"


class NotParticipant(BookingError):
    status_code = 403
    code = "forbidden"


class SlotUnavailable(BookingError):
    status_code = 409
    code = "slot_unavailable"


class InvalidTransition(BookingError):
    status_code = 409
    code = "invalid_transition"


class IntakeRequired(BookingError):
    status_code = 409
    code = "intake_form_required"


class CooldownActive(BookingError):
    status_code = 429
    code = "cooldown_active"

    def __init__(self, message: str, expires_at: Optional[datetime] = None, **extra: Any) -> None:
        super().__init__(message, expires_at=expires_at, **extra)
        self.expires_at = expires_at
