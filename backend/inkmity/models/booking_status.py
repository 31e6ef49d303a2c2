import enum


class BookingStatus(str, enum.Enum):
    """Lifecycle states of a booking."""
    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    BOOKED = "booked"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DENIED = "denied"
    EXPIRED = "expired"
    NO_SHOW = "no_show"


# Statuses that hold a slot on the artist's calendar
ACTIVE_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.AWAITING_PAYMENT,
    BookingStatus.BOOKED,
    BookingStatus.ACCEPTED,
    BookingStatus.COMPLETED,
)


class AppointmentType(str, enum.Enum):
    CONSULTATION = "consultation"
    TATTOO_SESSION = "tattoo_session"


class CancelledBy(str, enum.Enum):
    CLIENT = "client"
    ARTIST = "artist"
    SYSTEM = "system"
