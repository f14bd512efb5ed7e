"""Slot generation and time helpers."""

from datetime import date

import pytest

from app.core.exceptions import ValidationError
from app.schemas import BookingConfigIn, OpeningHourIn
from app.services.reservations import (
    BookingConfig,
    DayHours,
    build_slots,
    get_slots_for_date,
    is_hhmm,
    parse_date_only,
    sunday_first_weekday,
    to_hhmm,
    to_minutes,
    update_opening_hours,
)
from tests.conftest import next_weekday

CONFIG = BookingConfig(capacity_per_slot=30, slot_duration_minutes=60, max_party_size=10)


def open_day(open_time="10:00", close_time="22:00") -> DayHours:
    return DayHours(day_of_week=1, is_closed=False, open_time=open_time, close_time=close_time)


# =============================================================================
# TIME HELPERS
# =============================================================================

@pytest.mark.parametrize("value,expected", [
    ("00:00", True),
    ("23:59", True),
    ("24:00", False),
    ("12:60", False),
    ("9:30", False),
    ("09:30:00", False),
    (None, False),
    (930, False),
])
def test_is_hhmm(value, expected):
    assert is_hhmm(value) is expected


def test_minutes_conversion():
    assert to_minutes("18:30") == 1110
    assert to_hhmm(1110) == "18:30"
    assert to_hhmm(0) == "00:00"


def test_to_minutes_rejects_malformed_time():
    with pytest.raises(ValidationError):
        to_minutes("6pm")


def test_parse_date_only():
    assert parse_date_only("2026-11-06") == date(2026, 11, 6)
    assert parse_date_only("2026-11-06T18:00:00Z") == date(2026, 11, 6)
    assert parse_date_only("2026-02-30") is None
    assert parse_date_only("tomorrow") is None
    assert parse_date_only("2026-11-06garbage!!") is None
    assert parse_date_only("2026-11-06 18:00") is None
    assert parse_date_only("2026-1-6") is None
    assert parse_date_only(None) is None


def test_weekday_index_starts_on_sunday():
    assert sunday_first_weekday(date(2030, 1, 6)) == 0  # Sunday
    assert sunday_first_weekday(date(2024, 1, 1)) == 1  # Monday
    assert sunday_first_weekday(date(2030, 1, 5)) == 6  # Saturday


# =============================================================================
# build_slots
# =============================================================================

def test_hourly_slots_fill_the_day():
    slots = build_slots(open_day(), CONFIG, {})

    assert len(slots) == 12
    assert (slots[0].start, slots[0].end) == ("10:00", "11:00")
    assert (slots[-1].start, slots[-1].end) == ("21:00", "22:00")
    assert all(s.available_seats == 30 and s.is_available for s in slots)


def test_partial_window_at_close_is_dropped():
    slots = build_slots(open_day(close_time="21:30"), CONFIG, {})

    assert slots[-1].end == "21:00"
    assert all(to_minutes(s.end) <= to_minutes("21:30") for s in slots)


def test_window_ending_exactly_at_close_is_kept():
    config = BookingConfig(capacity_per_slot=30, slot_duration_minutes=90, max_party_size=10)
    slots = build_slots(open_day(), config, {})

    assert [s.start for s in slots] == [
        "10:00", "11:30", "13:00", "14:30", "16:00", "17:30", "19:00", "20:30"
    ]
    assert slots[-1].end == "22:00"


def test_slots_are_contiguous():
    slots = build_slots(open_day("11:15", "15:45"), CONFIG, {})

    for previous, current in zip(slots, slots[1:]):
        assert previous.end == current.start


def test_reserved_seats_reduce_availability():
    slots = {s.start: s for s in build_slots(open_day(), CONFIG, {"18:00": 10, "19:00": 30})}

    assert slots["18:00"].reserved_seats == 10
    assert slots["18:00"].available_seats == 20
    assert slots["19:00"].available_seats == 0
    assert slots["19:00"].is_available is False


def test_overbooked_slot_reports_zero_available():
    slot = build_slots(open_day(), CONFIG, {"10:00": 35})[0]

    assert slot.reserved_seats == 35
    assert slot.available_seats == 0


def test_closed_or_missing_day_has_no_slots():
    closed = DayHours(day_of_week=0, is_closed=True, open_time=None, close_time=None)
    no_times = DayHours(day_of_week=0, is_closed=False, open_time=None, close_time="22:00")

    assert build_slots(None, CONFIG, {}) == []
    assert build_slots(closed, CONFIG, {}) == []
    assert build_slots(no_times, CONFIG, {}) == []


def test_duration_longer_than_day_gives_no_slots():
    config = BookingConfig(capacity_per_slot=30, slot_duration_minutes=120, max_party_size=10)
    assert build_slots(open_day("10:00", "11:00"), config, {}) == []


# =============================================================================
# get_slots_for_date
# =============================================================================

async def test_slots_for_open_date(session, seeded):
    day = next_weekday(3)
    day_slots = await get_slots_for_date(session, day)

    assert day_slots.closed is False
    assert day_slots.message is None
    assert len(day_slots.slots) == 12


async def test_slots_for_closed_date(session, seeded):
    hours = [
        OpeningHourIn(day_of_week=d, is_closed=(d == 1), open_time="10:00", close_time="22:00")
        for d in range(7)
    ]
    await update_opening_hours(session, hours, BookingConfigIn())

    day_slots = await get_slots_for_date(session, next_weekday(1))

    assert day_slots.closed is True
    assert day_slots.slots == []
    assert day_slots.message == "Closed"


async def test_slot_listing_is_repeatable(session, seeded):
    day = next_weekday(5)

    first = await get_slots_for_date(session, day)
    second = await get_slots_for_date(session, day)

    assert first.slots == second.slots
