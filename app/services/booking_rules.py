from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from app.core.config import settings

IST_OFFSET = timedelta(hours=5, minutes=30)
SLOT_MINUTES = 30


@dataclass(frozen=True)
class TimeSlot:
    time: str
    label: str
    duration: int = SLOT_MINUTES

    def as_dict(self) -> dict:
        return {"time": self.time, "label": self.label, "duration": self.duration}


# Working window 5:00 PM - 8:00 PM, Monday to Saturday
DEFAULT_SLOTS = [
    TimeSlot("17:00", "5:00 PM - 5:30 PM"),
    TimeSlot("17:30", "5:30 PM - 6:00 PM"),
    TimeSlot("18:00", "6:00 PM - 6:30 PM"),
    TimeSlot("18:30", "6:30 PM - 7:00 PM"),
    TimeSlot("19:00", "7:00 PM - 7:30 PM"),
    TimeSlot("19:30", "7:30 PM - 8:00 PM"),
]
SLOT_TIMES = [slot.time for slot in DEFAULT_SLOTS]
SLOTS_BY_TIME = {slot.time: slot for slot in DEFAULT_SLOTS}


def get_ist_now() -> datetime:
    """Return the current wall-clock time in IST (naive)."""
    return datetime.utcnow() + IST_OFFSET


def get_ist_today() -> date:
    """Return today's date in IST (UTC+5:30). Separated for monkeypatching in tests."""
    return get_ist_now().date()


def booking_window(today: date | None = None) -> tuple[date, date]:
    """Return the inclusive booking window (today ~ horizon days ahead) based on IST today."""
    ref = today or get_ist_today()
    return ref, ref + timedelta(days=settings.booking_horizon_days)


def is_within_booking_window(target: date, today: date | None = None) -> bool:
    start, end = booking_window(today)
    return start <= target <= end


def is_closed_day(target: date) -> bool:
    """Sessions are not available on Sundays."""
    return target.weekday() == 6


def is_valid_slot(slot_time: str) -> bool:
    return slot_time in SLOTS_BY_TIME


def slots_for_date(target: date, now: datetime | None = None) -> list[TimeSlot]:
    """Fixed slots for ``target``; on today's date only slots that have not yet started."""
    if is_closed_day(target):
        return []
    now = now or get_ist_now()
    return [slot for slot in DEFAULT_SLOTS if not has_started(target, slot.time, now)]


def slot_start(target: date, slot_time: str) -> datetime:
    hours, minutes = (int(part) for part in slot_time.split(":"))
    return datetime.combine(target, time(hours, minutes))


def has_started(target: date, slot_time: str, now: datetime | None = None) -> bool:
    return slot_start(target, slot_time) <= (now or get_ist_now())
