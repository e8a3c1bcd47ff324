"""
Unit tests for the free-slot calculator.
"""
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from servicehub.api.middleware.error_handler import ValidationException
from servicehub.services.availability_service import (
    FreeSlots,
    compute_free_slots,
    day_schedule,
    parse_date,
    parse_time,
    weekday_name,
)


MONDAY = date(2030, 1, 7)


def hours(**days):
    return {day: entry for day, entry in days.items()}


def booked(start_time, day=MONDAY):
    return SimpleNamespace(date=day, start_time=start_time)


def at(hhmm, day=MONDAY):
    return datetime.combine(day, parse_time(hhmm))


@pytest.mark.unit
def test_weekday_name():
    assert weekday_name(MONDAY) == "monday"
    assert weekday_name(date(2030, 1, 13)) == "sunday"


@pytest.mark.unit
def test_one_hour_window_gives_two_slots():
    working_hours = hours(monday={"open": "09:00", "close": "10:00", "is_open": True})

    slots = list(compute_free_slots(working_hours, MONDAY, []))

    assert slots == [at("09:00"), at("09:30")]


@pytest.mark.unit
def test_booked_start_is_removed():
    working_hours = hours(monday={"open": "09:00", "close": "10:00", "is_open": True})

    slots = list(compute_free_slots(working_hours, MONDAY, [booked("09:30")]))

    assert slots == [at("09:00")]


@pytest.mark.unit
@pytest.mark.parametrize("entry", [
    None,
    {"open": "09:00", "close": "17:00", "is_open": False},
    {"open": "", "close": "17:00", "is_open": True},
    {"open": "09:00", "close": None, "is_open": True},
])
def test_closed_days_have_no_slots(entry):
    working_hours = hours(monday=entry)

    result = compute_free_slots(working_hours, MONDAY, [])

    assert result.is_closed
    assert list(result) == []


@pytest.mark.unit
def test_missing_weekday_is_closed():
    working_hours = hours(tuesday={"open": "09:00", "close": "17:00"})

    assert list(compute_free_slots(working_hours, MONDAY, [])) == []
    assert list(compute_free_slots(None, MONDAY, [])) == []


@pytest.mark.unit
def test_missing_is_open_counts_as_open():
    entry = {"open": "09:00", "close": "09:30"}

    assert day_schedule({"monday": entry}, MONDAY) == entry
    assert list(compute_free_slots({"monday": entry}, MONDAY, [])) == [at("09:00")]


@pytest.mark.unit
def test_open_equal_to_close_gives_nothing():
    working_hours = hours(monday={"open": "12:00", "close": "12:00", "is_open": True})

    result = compute_free_slots(working_hours, MONDAY, [])

    assert not result.is_closed
    assert list(result) == []


@pytest.mark.unit
def test_slot_starting_before_close_is_offered():
    """A slot is offered when its start is before close, even if it runs past it."""
    working_hours = hours(monday={"open": "09:00", "close": "09:45", "is_open": True})

    slots = list(compute_free_slots(working_hours, MONDAY, []))

    assert slots == [at("09:00"), at("09:30")]


@pytest.mark.unit
def test_only_exact_start_times_conflict():
    """A long booking at 09:00 leaves 09:30 free."""
    working_hours = hours(monday={"open": "09:00", "close": "11:00", "is_open": True})

    slots = list(compute_free_slots(working_hours, MONDAY, [booked("09:00")]))

    assert slots == [at("09:30"), at("10:00"), at("10:30")]


@pytest.mark.unit
def test_bookings_on_other_days_are_ignored():
    working_hours = hours(monday={"open": "09:00", "close": "10:00", "is_open": True})
    other_day = booked("09:00", day=date(2030, 1, 14))

    slots = list(compute_free_slots(working_hours, MONDAY, [other_day]))

    assert slots == [at("09:00"), at("09:30")]


@pytest.mark.unit
def test_custom_slot_length():
    working_hours = hours(monday={"open": "09:00", "close": "10:00", "is_open": True})

    slots = list(compute_free_slots(working_hours, MONDAY, [], slot_minutes=15))

    assert len(slots) == 4
    assert slots[-1] == at("09:45")


@pytest.mark.unit
def test_free_slots_can_be_iterated_twice():
    slots = FreeSlots(MONDAY, parse_time("09:00"), parse_time("10:00"), {at("09:00")})

    assert list(slots) == list(slots) == [at("09:30")]


@pytest.mark.unit
@pytest.mark.parametrize("bad", ["9am", "25:00", "", "09-00"])
def test_malformed_hours_raise_validation_error(bad):
    working_hours = hours(monday={"open": bad or "x", "close": "10:00", "is_open": True})

    with pytest.raises(ValidationException):
        compute_free_slots(working_hours, MONDAY, [])


@pytest.mark.unit
def test_malformed_booking_start_raises():
    working_hours = hours(monday={"open": "09:00", "close": "10:00", "is_open": True})

    with pytest.raises(ValidationException) as exc_info:
        compute_free_slots(working_hours, MONDAY, [booked("half past nine")])

    assert exc_info.value.details == {"errors": {"start_time": "half past nine"}}


@pytest.mark.unit
def test_parse_date():
    assert parse_date("2030-01-07") == MONDAY

    with pytest.raises(ValidationException):
        parse_date("07/01/2030")
