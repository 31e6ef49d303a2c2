from .user import User, UserRole
from .booking import Booking
from .booking_status import BookingStatus, AppointmentType, CancelledBy, ACTIVE_STATUSES
from .booking_cooldown import BookingCooldown
from .intake_form import IntakeForm, REQUIRED_CONSENTS
from .billing import Billing, BillingType, BillingStatus
from .availability import Availability, WEEKDAY_KEYS
from .calendar_lock import CalendarLock
from .artist_policy import ArtistPolicy, DepositMode
from .message import Message
from .deleted_conversation import DeletedConversation

__all__ = [
    "User",
    "UserRole",
    "Booking",
    "BookingStatus",
    "AppointmentType",
    "CancelledBy",
    "ACTIVE_STATUSES",
    "BookingCooldown",
    "IntakeForm",
    "REQUIRED_CONSENTS",
    "Billing",
    "BillingType",
    "BillingStatus",
    "Availability",
    "WEEKDAY_KEYS",
    "CalendarLock",
    "ArtistPolicy",
    "DepositMode",
    "Message",
    "DeletedConversation",
]
