"""
Slot Availability & Booking Engine

Derives bookable slots for a calendar day from the weekly opening hours,
the singleton booking config and the CONFIRMED reservations already stored,
and admits new reservations against the remaining capacity.

Nothing here is cached between calls: every function reads the store at
call time, so the same inputs always give the same slots.

Capacity check and insert for one slot run under a per-slot lock (an
asyncio lock inside the process, plus a transaction-scoped advisory lock
on PostgreSQL) so two concurrent requests cannot both take the last seats.

Version: 1.0.0
"""

import asyncio
import logging
import re
import zlib
from contextlib import asynccontextmanager
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import select, func, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import (
    CapacityConflict,
    ClosedDayError,
    InvalidTimeSlotError,
    ValidationError,
)
from app.models import OpeningHour, Reservation, ReservationStatus, RestaurantConfig

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(T.*)?$")
DAYS_PER_WEEK = 7
CLOSED_MESSAGE = "Closed"


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class BookingConfig:
    """Booking rules read once per request from the restaurant_config row."""
    capacity_per_slot: int
    slot_duration_minutes: int
    max_party_size: int

    @classmethod
    def defaults(cls) -> "BookingConfig":
        settings = get_settings()
        return cls(
            capacity_per_slot=settings.default_capacity_per_slot,
            slot_duration_minutes=settings.default_slot_duration_minutes,
            max_party_size=settings.default_max_party_size,
        )

    @classmethod
    def from_row(cls, row: Optional[RestaurantConfig]) -> "BookingConfig":
        if row is None:
            return cls.defaults()
        return cls(
            capacity_per_slot=row.capacity_per_slot,
            slot_duration_minutes=row.slot_duration_minutes,
            max_party_size=row.max_party_size,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DayHours:
    day_of_week: int
    is_closed: bool
    open_time: Optional[str]
    close_time: Optional[str]

    @property
    def is_open(self) -> bool:
        return not self.is_closed and bool(self.open_time) and bool(self.close_time)

    @classmethod
    def from_row(cls, row: Optional[OpeningHour]) -> Optional["DayHours"]:
        if row is None:
            return None
        return cls(
            day_of_week=row.day_of_week,
            is_closed=row.is_closed,
            open_time=row.open_time,
            close_time=row.close_time,
        )


@dataclass(frozen=True)
class Slot:
    """A derived booking window; never persisted."""
    start: str
    end: str
    capacity_per_slot: int
    reserved_seats: int
    available_seats: int
    is_available: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DaySlots:
    date: date
    slots: list[Slot]
    closed: bool = False

    @property
    def message(self) -> Optional[str]:
        return CLOSED_MESSAGE if self.closed else None


# =============================================================================
# TIME HELPERS
# =============================================================================

def is_hhmm(value: Any) -> bool:
    """True for a 24h "HH:MM" string with hour < 24 and minute < 60."""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        return False
    hours, minutes = (int(part) for part in value.split(":"))
    return hours < 24 and minutes < 60


def to_minutes(hhmm: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    if not is_hhmm(hhmm):
        raise ValidationError("Time must be HH:MM", field="time")
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return hours * 60 + minutes


def to_hhmm(total_minutes: int) -> str:
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def parse_date_only(value: Any) -> Optional[date]:
    """Parse "YYYY-MM-DD" (a trailing "T..." time part is ignored). None if invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def sunday_first_weekday(day: date) -> int:
    """Weekday index with 0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % DAYS_PER_WEEK


# =============================================================================
# SLOT GENERATION (pure)
# =============================================================================

def iter_slot_windows(open_minutes: int, close_minutes: int, duration: int):
    """Yield (start, end) minute pairs of back-to-back windows inside the day."""
    start = open_minutes
    while start + duration <= close_minutes:
        yield start, start + duration
        start += duration


def build_slots(
    hours: Optional[DayHours],
    config: BookingConfig,
    reserved_by_start: dict[str, int],
) -> list[Slot]:
    """
    Enumerate the day's slots.

    Args:
        hours: the weekday's opening hours (None or closed -> no slots)
        config: booking rules for this request
        reserved_by_start: CONFIRMED seats already booked, keyed by slot start

    Returns:
        Slots in chronological order
    """
    if hours is None or not hours.is_open:
        return []

    open_minutes = to_minutes(hours.open_time)
    close_minutes = to_minutes(hours.close_time)

    slots = []
    for start, end in iter_slot_windows(open_minutes, close_minutes, config.slot_duration_minutes):
        start_label = to_hhmm(start)
        reserved = reserved_by_start.get(start_label, 0)
        available = max(config.capacity_per_slot - reserved, 0)
        slots.append(Slot(
            start=start_label,
            end=to_hhmm(end),
            capacity_per_slot=config.capacity_per_slot,
            reserved_seats=reserved,
            available_seats=available,
            is_available=available > 0,
        ))
    return slots


# =============================================================================
# STORE READS
# =============================================================================

async def get_booking_config(session: AsyncSession) -> BookingConfig:
    row = await session.get(RestaurantConfig, RestaurantConfig.SINGLETON_ID)
    return BookingConfig.from_row(row)


async def get_opening_hours(session: AsyncSession) -> list[OpeningHour]:
    result = await session.execute(select(OpeningHour).order_by(OpeningHour.day_of_week))
    return list(result.scalars().all())


async def get_day_hours(session: AsyncSession, day_of_week: int) -> Optional[DayHours]:
    result = await session.execute(
        select(OpeningHour).where(OpeningHour.day_of_week == day_of_week)
    )
    return DayHours.from_row(result.scalars().first())


async def get_reserved_seats(session: AsyncSession, day: date, slot_start: str) -> int:
    """Seats taken by CONFIRMED reservations in one slot."""
    result = await session.execute(
        select(func.coalesce(func.sum(Reservation.party_size), 0)).where(
            Reservation.date == day,
            Reservation.slot_start == slot_start,
            Reservation.status == ReservationStatus.CONFIRMED,
        )
    )
    return int(result.scalar() or 0)


async def list_confirmed_reservations(session: AsyncSession, day: date) -> list[tuple[str, int]]:
    """(slot_start, party_size) for every CONFIRMED reservation on a day."""
    result = await session.execute(
        select(Reservation.slot_start, Reservation.party_size).where(
            Reservation.date == day,
            Reservation.status == ReservationStatus.CONFIRMED,
        )
    )
    return [(row.slot_start, row.party_size) for row in result.all()]


async def get_slots_for_date(session: AsyncSession, day: date) -> DaySlots:
    """Slot listing for one calendar day."""
    hours = await get_day_hours(session, sunday_first_weekday(day))
    config = await get_booking_config(session)

    if hours is None or not hours.is_open:
        return DaySlots(date=day, slots=[], closed=True)

    reserved_by_start: dict[str, int] = {}
    for slot_start, party_size in await list_confirmed_reservations(session, day):
        reserved_by_start[slot_start] = reserved_by_start.get(slot_start, 0) + party_size

    return DaySlots(date=day, slots=build_slots(hours, config, reserved_by_start))


# =============================================================================
# SLOT LOCKS
# =============================================================================

class SlotLockRegistry:
    """In-process mutual exclusion per (date, slot_start)."""

    def __init__(self):
        self._locks: dict[tuple[date, str], asyncio.Lock] = {}
        self._holders: dict[tuple[date, str], int] = {}

    @asynccontextmanager
    async def hold(self, day: date, slot_start: str):
        key = (day, slot_start)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


slot_locks = SlotLockRegistry()


def advisory_lock_key(day: date, slot_start: str) -> int:
    return zlib.crc32(f"reservation:{day.isoformat()}:{slot_start}".encode("utf-8"))


async def _lock_slot_in_database(session: AsyncSession, day: date, slot_start: str) -> None:
    """Serialize writers across processes (PostgreSQL only)."""
    bind = session.bind
    if bind is not None and bind.dialect.name == "postgresql":
        await session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"),
            {"key": advisory_lock_key(day, slot_start)},
        )


# =============================================================================
# RESERVATION ADMISSION
# =============================================================================

def _parse_guests(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("guests must be positive integer", field="guests")
    if isinstance(value, int):
        guests = value
    elif isinstance(value, float) and value.is_integer():
        guests = int(value)
    elif isinstance(value, str) and value.strip().lstrip("+").isdigit():
        guests = int(value.strip())
    else:
        raise ValidationError("guests must be positive integer", field="guests")

    if guests <= 0:
        raise ValidationError("guests must be positive integer", field="guests")
    return guests


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


async def create_reservation(
    session: AsyncSession,
    name: Optional[str],
    phone: Optional[str],
    guests: Any,
    date_value: Any,
    time_value: Optional[str],
    email: Optional[str] = None,
) -> Reservation:
    """
    Validate a booking request and store it as CONFIRMED.

    Checks run in a fixed order and the first failure is raised; nothing is
    written unless every check passes.

    Raises:
        ValidationError: missing/malformed fields or party above max_party_size
        ClosedDayError: no opening hours on that weekday
        InvalidTimeSlotError: start time outside the day or off the slot grid
        CapacityConflict: fewer seats left than guests requested
    """
    if any(_is_blank(v) for v in (name, phone, guests, date_value, time_value)):
        raise ValidationError("name, phone, guests, date, time are required")

    party_size = _parse_guests(guests)

    day = parse_date_only(date_value)
    if day is None:
        raise ValidationError("Invalid date format", field="date")

    email = None if _is_blank(email) else email.strip()

    config = await get_booking_config(session)
    if party_size > config.max_party_size:
        raise ValidationError(f"Maximum allowed guests is {config.max_party_size}", field="guests")

    hours = await get_day_hours(session, sunday_first_weekday(day))
    if hours is None or not hours.is_open:
        raise ClosedDayError()

    if not is_hhmm(time_value):
        raise InvalidTimeSlotError("Time must be HH:MM")

    open_minutes = to_minutes(hours.open_time)
    close_minutes = to_minutes(hours.close_time)
    start_minutes = to_minutes(time_value)
    duration = config.slot_duration_minutes

    if start_minutes < open_minutes or start_minutes + duration > close_minutes:
        raise InvalidTimeSlotError()
    if (start_minutes - open_minutes) % duration != 0:
        raise InvalidTimeSlotError()

    slot_start = to_hhmm(start_minutes)
    slot_end = to_hhmm(start_minutes + duration)

    async with slot_locks.hold(day, slot_start):
        try:
            await _lock_slot_in_database(session, day, slot_start)

            reserved = await get_reserved_seats(session, day, slot_start)
            available = config.capacity_per_slot - reserved
            if available < party_size:
                logger.info(
                    f"Slot {day} {slot_start} full: requested {party_size}, "
                    f"available {max(available, 0)}"
                )
                raise CapacityConflict(available_seats=max(available, 0))

            reservation = Reservation(
                name=name.strip(),
                phone=phone.strip(),
                email=email,
                date=day,
                slot_start=slot_start,
                slot_end=slot_end,
                party_size=party_size,
                status=ReservationStatus.CONFIRMED,
            )
            session.add(reservation)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    await session.refresh(reservation)
    logger.info(f"Reservation #{reservation.id} confirmed: {day} {slot_start} x{party_size}")
    return reservation


async def list_reservations(
    session: AsyncSession,
    day: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[int, list[Reservation]]:
    """Admin listing, newest first."""
    query = select(Reservation).order_by(Reservation.created_at.desc(), Reservation.id.desc())
    count_query = select(func.count(Reservation.id))

    if day is not None:
        query = query.where(Reservation.date == day)
        count_query = count_query.where(Reservation.date == day)

    total = (await session.execute(count_query)).scalar() or 0
    result = await session.execute(query.offset(skip).limit(limit))
    return total, list(result.scalars().all())


# =============================================================================
# OPENING HOURS & CONFIG UPDATE
# =============================================================================

def _positive_int(value: Any, field: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer", field=field)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", field=field)
    return value


def validate_week(hours: Optional[list]) -> list[DayHours]:
    """
    Check a full week of opening hours.

    Each entry is any object with day_of_week / is_closed / open_time /
    close_time attributes. Returns normalised DayHours (closed days carry
    no times).
    """
    if not isinstance(hours, list) or len(hours) != DAYS_PER_WEEK:
        raise ValidationError("hours must be an array of 7 days", field="hours")

    week = []
    seen = set()
    for entry in hours:
        day = entry.day_of_week
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationError("Invalid dayOfWeek", field="dayOfWeek")
        if day in seen:
            raise ValidationError(f"Duplicate dayOfWeek {day}", field="dayOfWeek")
        seen.add(day)

        if entry.is_closed:
            week.append(DayHours(day_of_week=day, is_closed=True, open_time=None, close_time=None))
            continue

        if not entry.open_time or not entry.close_time:
            raise ValidationError("openTime/closeTime required", field="openTime")
        if not is_hhmm(entry.open_time) or not is_hhmm(entry.close_time):
            raise ValidationError("Time must be HH:MM", field="openTime")
        if to_minutes(entry.open_time) >= to_minutes(entry.close_time):
            raise ValidationError("openTime must be before closeTime", field="closeTime")

        week.append(DayHours(
            day_of_week=day,
            is_closed=False,
            open_time=entry.open_time,
            close_time=entry.close_time,
        ))
    return week


def validate_config(config: Any) -> BookingConfig:
    defaults = BookingConfig.defaults()
    return BookingConfig(
        capacity_per_slot=_positive_int(
            getattr(config, "capacity_per_slot", None), "capacityPerSlot", defaults.capacity_per_slot
        ),
        slot_duration_minutes=_positive_int(
            getattr(config, "slot_duration_minutes", None), "slotDurationMinutes", defaults.slot_duration_minutes
        ),
        max_party_size=_positive_int(
            getattr(config, "max_party_size", None), "maxPartySize", defaults.max_party_size
        ),
    )


async def update_opening_hours(session: AsyncSession, hours: Optional[list], config: Any) -> BookingConfig:
    """
    Replace the weekly hours and booking config as one unit.

    Everything is validated before the first write; the upserts then commit
    in a single transaction, so either all eight rows change or none do.
    """
    week = validate_week(hours)
    booking_config = validate_config(config)

    try:
        existing = {row.day_of_week: row for row in await get_opening_hours(session)}
        for day in week:
            row = existing.get(day.day_of_week)
            if row is None:
                row = OpeningHour(day_of_week=day.day_of_week)
                session.add(row)
            row.is_closed = day.is_closed
            row.open_time = day.open_time
            row.close_time = day.close_time

        config_row = await session.get(RestaurantConfig, RestaurantConfig.SINGLETON_ID)
        if config_row is None:
            config_row = RestaurantConfig(id=RestaurantConfig.SINGLETON_ID)
            session.add(config_row)
        config_row.capacity_per_slot = booking_config.capacity_per_slot
        config_row.slot_duration_minutes = booking_config.slot_duration_minutes
        config_row.max_party_size = booking_config.max_party_size

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(f"Opening hours updated ({booking_config})")
    return booking_config


async def ensure_booking_defaults(session: AsyncSession) -> None:
    """Create the config row and any missing weekday rows (open 10:00-22:00)."""
    defaults = BookingConfig.defaults()

    if await session.get(RestaurantConfig, RestaurantConfig.SINGLETON_ID) is None:
        session.add(RestaurantConfig(
            id=RestaurantConfig.SINGLETON_ID,
            capacity_per_slot=defaults.capacity_per_slot,
            slot_duration_minutes=defaults.slot_duration_minutes,
            max_party_size=defaults.max_party_size,
        ))

    present = {row.day_of_week for row in await get_opening_hours(session)}
    for day in range(DAYS_PER_WEEK):
        if day not in present:
            session.add(OpeningHour(day_of_week=day, is_closed=False, open_time="10:00", close_time="22:00"))

    await session.commit()
