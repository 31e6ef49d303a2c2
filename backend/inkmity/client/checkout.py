import logging
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from ..schemas.booking import BookingCreate
from . import billing, bookings
from .http import ApiClient, ApiError

logger = logging.getLogger(__name__)

NO_URL_MESSAGE = "No checkout URL returned."
UNEXPECTED_MESSAGE = "Could not start checkout. Please try again."


class CheckoutError(Exception):
    pass


class BookingCheckout:
    """Create a booking, then send the client to pay for it.

    ``processing`` is a single-flight guard: a second :meth:`start` while one
    is running (a double click) is ignored. It stays set after a successful
    redirect and is cleared when an attempt fails so the user can retry.
    """

    def __init__(
        self,
        create_booking: Callable[[BookingCreate], Awaitable[Any]],
        start_checkout: Callable[[Any, str], Awaitable[Any]],
        navigate: Callable[[str], None],
    ) -> None:
        self._create_booking = create_booking
        self._start_checkout = start_checkout
        self._navigate = navigate
        self.processing = False
        self.error: Optional[str] = None

    @classmethod
    def for_api(cls, api: ApiClient, navigate: Callable[[str], None]) -> "BookingCheckout":
        return cls(
            create_booking=lambda data: bookings.create_booking(api, data),
            start_checkout=lambda booking_id, label: billing.start_checkout(api, booking_id, label),
            navigate=navigate,
        )

    async def start(self, params: BookingCreate, label: Optional[str] = None) -> Optional[str]:
        """Run the flow; returns the URL navigated to, or ``None``."""
        if self.processing:
            return None
        self.processing = True
        self.error = None
        try:
            booking = await self._create_booking(params)
            result = await self._start_checkout(booking.id, label or billing.DEFAULT_LABEL)
            if result.mode == "free":
                target = f"/checkout/success?booking={booking.id}"
            elif result.url:
                target = result.url
            else:
                raise CheckoutError(NO_URL_MESSAGE)
        except (ApiError, CheckoutError) as exc:
            logger.warning("Checkout failed: %s", exc)
            self.error = str(exc)
            self.processing = False
            return None
        except (httpx.HTTPError, ValidationError) as exc:
            logger.warning("Checkout failed: %s", exc)
            self.error = UNEXPECTED_MESSAGE
            self.processing = False
            return None
        self._navigate(target)
        return target
