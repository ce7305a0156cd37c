from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from app.client.errors import BookingClientError, DateOutOfRange
from app.core.config import settings
from app.services import booking_rules
from app.services.booking_rules import TimeSlot

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE_MESSAGE = "Booking service is currently unavailable"
CLOSED_DAY_MESSAGE = "Sessions are not available on Sundays"


@dataclass
class SlotLookup:
    date: date
    slots: list[TimeSlot] = field(default_factory=list)
    service_unavailable: bool = False
    message: Optional[str] = None

    @property
    def has_open_slots(self) -> bool:
        return bool(self.slots)

    def find(self, slot_time: str) -> Optional[TimeSlot]:
        return next((slot for slot in self.slots if slot.time == slot_time), None)


def booking_horizon() -> tuple[date, date]:
    today = booking_rules.get_ist_today()
    return today, today + timedelta(days=settings.booking_horizon_days)


class SlotResolver:
    """Resolve bookable slots for a date against the data server."""

    def __init__(self, api) -> None:
        self.api = api

    def get_available_slots(self, target: date) -> SlotLookup:
        start, end = booking_horizon()
        if not start <= target <= end:
            raise DateOutOfRange(f"Select a date between {start.isoformat()} and {end.isoformat()}")

        if booking_rules.is_closed_day(target):
            return SlotLookup(date=target, message=CLOSED_DAY_MESSAGE)

        try:
            data = self.api.get(f"/appointments/available-slots/{target.isoformat()}")
        except BookingClientError as exc:
            logger.warning("Slot lookup for %s failed: %s", target, exc)
            return SlotLookup(date=target, service_unavailable=True, message=SERVICE_UNAVAILABLE_MESSAGE)

        offered = {item.get("time") for item in (data or {}).get("available_slots", []) if isinstance(item, dict)}
        # Only the fixed working-window slots are ever bookable, whatever the payload says.
        slots = [slot for slot in booking_rules.DEFAULT_SLOTS if slot.time in offered]
        message = None if slots else "No slots available for this date"
        return SlotLookup(date=target, slots=slots, message=message)
