import logging
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, List, Optional

import httpx
from pydantic import ValidationError

from ..models.booking_status import AppointmentType
from ..schemas.availability import Slot
from . import bookings
from .http import ApiClient, ApiError

logger = logging.getLogger(__name__)

SlotLoader = Callable[[str, date, int], Awaitable[List[Slot]]]

LOAD_FAILED_MESSAGE = "Could not load available times."


class TimeSlotStep:
    """Slot picker for one artist and duration.

    Tattoo sessions go through the health-instructions modal: the chosen slot
    is parked in ``pending`` and only reported once the client acknowledges.
    """

    def __init__(
        self,
        artist_id: str,
        duration_minutes: int,
        appointment_type: AppointmentType,
        on_select: Callable[[datetime, datetime], None],
        load_slots: SlotLoader,
    ) -> None:
        self.artist_id = artist_id
        self.duration = timedelta(minutes=duration_minutes)
        self.appointment_type = AppointmentType(appointment_type)
        self._on_select = on_select
        self._load_slots = load_slots
        self.slots: List[Slot] = []
        self.pending: Optional[Slot] = None
        self.health_modal_open = False
        self.loading = False
        self.error: Optional[str] = None

    @classmethod
    def for_api(
        cls,
        api: ApiClient,
        artist_id: str,
        duration_minutes: int,
        appointment_type: AppointmentType,
        on_select: Callable[[datetime, datetime], None],
    ) -> "TimeSlotStep":
        return cls(
            artist_id,
            duration_minutes,
            appointment_type,
            on_select,
            lambda artist, day, minutes: bookings.list_slots(api, artist, day, minutes),
        )

    async def load(self, day: date) -> List[Slot]:
        self.loading = True
        self.error = None
        try:
            minutes = int(self.duration.total_seconds() // 60)
            slots = await self._load_slots(self.artist_id, day, minutes)
        except ApiError as exc:
            self.error = exc.message
            self.slots = []
            return self.slots
        except (httpx.HTTPError, ValidationError) as exc:
            logger.warning("Loading slots for %s failed: %s", self.artist_id, exc)
            self.error = LOAD_FAILED_MESSAGE
            self.slots = []
            return self.slots
        finally:
            self.loading = False
        self.slots = [s for s in slots if s.end_at - s.start_at >= self.duration]
        return self.slots

    def select(self, slot: Slot) -> None:
        if self.appointment_type == AppointmentType.TATTOO_SESSION:
            self.pending = slot
            self.health_modal_open = True
            return
        self._on_select(slot.start_at, slot.start_at + self.duration)

    def acknowledge_health(self) -> None:
        slot = self.pending
        self.pending = None
        self.health_modal_open = False
        if slot is not None:
            self._on_select(slot.start_at, slot.start_at + self.duration)

    def dismiss_health(self) -> None:
        self.pending = None
        self.health_modal_open = False
