"""
Availability calculator for business booking slots.

Turns a business's weekly working hours and the bookings already stored for
a day into the ordered list of free slot start times.

Conflicts are detected by exact start-time equality only: a 90 minute
booking at 09:00 blocks the 09:00 slot but not 09:30 or 10:00. Callers that
need overlap detection must check durations themselves.
"""
from datetime import date as date_type, datetime, time, timedelta
from typing import Iterable, Iterator, Mapping, Optional, Set

from servicehub.api.middleware.error_handler import ValidationException
from servicehub.lib.logging import get_logger
from servicehub.lib.settings import settings
from servicehub.models.businesses import WEEKDAYS

logger = get_logger(__name__)


SLOT_MINUTES = 30
TIME_FORMAT = "%H:%M"


def parse_time(value: str, field: str = "time") -> time:
    """Parse a local `HH:MM` string, raising ValidationException on bad input."""
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).time()
    except (AttributeError, ValueError):
        raise ValidationException(
            f"Invalid {field} '{value}', expected HH:MM",
            errors={field: value},
        )


def parse_date(value: str, field: str = "date") -> date_type:
    """Parse a `YYYY-MM-DD` string, raising ValidationException on bad input."""
    try:
        return date_type.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationException(
            f"Invalid {field} '{value}', expected YYYY-MM-DD",
            errors={field: value},
        )


def weekday_name(day: date_type) -> str:
    return WEEKDAYS[day.weekday()]


def day_schedule(working_hours: Optional[Mapping], day: date_type) -> Optional[Mapping]:
    """
    Return the schedule entry for the weekday of `day`, or None when the
    business is closed that day.

    A day is closed when it has no entry, `is_open` is false, or either of
    `open`/`close` is empty. A missing `is_open` counts as open.
    """
    if not working_hours:
        return None

    entry = working_hours.get(weekday_name(day))
    if not entry:
        return None
    if not entry.get("is_open", True):
        return None
    if not entry.get("open") or not entry.get("close"):
        return None
    return entry


class FreeSlots:
    """
    Lazy, restartable sequence of free slot start times for one day.

    Inputs are validated on construction. Each iteration walks the day
    again from `open`, so iterating twice yields the same values and
    nothing is cached between calls.
    """

    def __init__(
        self,
        day: date_type,
        open_at: Optional[time],
        close_at: Optional[time],
        booked_starts: Set[datetime],
        slot_minutes: int = SLOT_MINUTES,
    ):
        self.day = day
        self.open_at = open_at
        self.close_at = close_at
        self.booked_starts = frozenset(booked_starts)
        self.step = timedelta(minutes=slot_minutes)

    @classmethod
    def closed(cls, day: date_type) -> "FreeSlots":
        return cls(day, None, None, set())

    @property
    def is_closed(self) -> bool:
        return self.open_at is None or self.close_at is None

    def __iter__(self) -> Iterator[datetime]:
        if self.is_closed:
            return
        current = datetime.combine(self.day, self.open_at)
        end = datetime.combine(self.day, self.close_at)
        while current < end:
            if current not in self.booked_starts:
                yield current
            current += self.step

    def __repr__(self) -> str:
        return f"<FreeSlots(day={self.day}, open={self.open_at}, close={self.close_at})>"


def compute_free_slots(
    working_hours: Optional[Mapping],
    day: date_type,
    existing_bookings: Iterable,
    slot_minutes: Optional[int] = None,
) -> FreeSlots:
    """
    Compute the free slots of a business for `day`.

    Args:
        working_hours: Weekday name -> {open, close, is_open} mapping
        day: Calendar day to compute
        existing_bookings: Objects with `date` and `start_time` attributes.
            Bookings for other days are ignored.
        slot_minutes: Slot granularity (defaults to the configured value)

    Returns:
        FreeSlots, empty when the business is closed that day

    Raises:
        ValidationException: Malformed open/close or booking start time
    """
    entry = day_schedule(working_hours, day)
    if entry is None:
        logger.debug("Business closed", extra={"extra_fields": {"day": str(day)}})
        return FreeSlots.closed(day)

    open_at = parse_time(entry["open"], "open")
    close_at = parse_time(entry["close"], "close")

    booked_starts = set()
    for booking in existing_bookings:
        if booking.date != day:
            continue
        start = parse_time(booking.start_time, "start_time")
        booked_starts.add(datetime.combine(day, start))

    return FreeSlots(
        day,
        open_at,
        close_at,
        booked_starts,
        slot_minutes=slot_minutes or settings.booking_slot_minutes,
    )
