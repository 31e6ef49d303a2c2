"""Async HTTP client for the Inkmity API, plus the booking-flow controllers built on it."""

from .http import ApiClient, ApiError
from .checkout import BookingCheckout
from .slot_step import TimeSlotStep

__all__ = ["ApiClient", "ApiError", "BookingCheckout", "TimeSlotStep"]
