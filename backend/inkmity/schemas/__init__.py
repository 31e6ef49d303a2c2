from .booking import (
    BookingCreate,
    BookingResponse,
    CancelRequest,
    DenyRequest,
    RescheduleRequest,
    CooldownStatus,
)
from .intake import IntakeFormCreate, IntakeFormResponse
from .billing import CheckoutRequest, CheckoutResponse, RefundRequest, RefundItem, RefundResponse
from .availability import TimeRange, AvailabilityUpsert, AvailabilityResponse, Slot
from .artist_policy import ArtistPolicyUpdate, ArtistPolicyResponse
from .message import MessageCreate, MessageResponse, ConversationResponse
from .user import UserSync, UserResponse, DashboardResponse
