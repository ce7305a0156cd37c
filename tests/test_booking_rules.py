from datetime import date, datetime

import pytest

from app.services import booking_rules


def test_booking_window_spans_horizon_days():
    start, end = booking_rules.booking_window(date(2025, 4, 7))
    assert start == date(2025, 4, 7)
    assert end == date(2025, 5, 7)


@pytest.mark.parametrize(
    "target, expected",
    [
        (date(2025, 4, 6), False),  # yesterday
        (date(2025, 4, 7), True),  # today
        (date(2025, 5, 7), True),  # day 30
        (date(2025, 5, 8), False),  # day 31
    ],
)
def test_is_within_booking_window(target: date, expected: bool):
    assert booking_rules.is_within_booking_window(target, date(2025, 4, 7)) is expected


def test_only_sundays_are_closed():
    week = [date(2025, 4, 7 + offset) for offset in range(7)]
    assert [booking_rules.is_closed_day(day) for day in week] == [False] * 6 + [True]
    assert booking_rules.slots_for_date(date(2025, 4, 13)) == []
    assert len(booking_rules.slots_for_date(date(2025, 4, 12))) == 6


@pytest.mark.parametrize("slot, expected", [("17:00", True), ("19:30", True), ("20:00", False), ("16:30", False)])
def test_is_valid_slot(slot: str, expected: bool):
    assert booking_rules.is_valid_slot(slot) is expected


def test_slot_start_combines_date_and_time():
    assert booking_rules.slot_start(date(2025, 4, 10), "18:30") == datetime(2025, 4, 10, 18, 30)


def test_slots_for_today_skip_started_windows():
    now = datetime(2025, 4, 7, 17, 30)
    assert [slot.time for slot in booking_rules.slots_for_date(date(2025, 4, 7), now)] == ["18:00", "18:30", "19:00", "19:30"]
    assert len(booking_rules.slots_for_date(date(2025, 4, 8), now)) == 6
    assert booking_rules.has_started(date(2025, 4, 7), "17:30", now) is True
