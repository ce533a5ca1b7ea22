"""Unit tests for booking domain objects; no database involved."""

from __future__ import annotations

from datetime import date, time

import pytest

from apps.bookings.domain.availability import (
    BLACKOUT_DEFAULT_REASON,
    NO_SLOTS_REASON,
    PACKAGE_UNAVAILABLE_REASON,
    PREPARATION_REASON,
    VerdictStatus,
    decide,
    in_preparation_period,
    preparation_dates,
)
from apps.bookings.domain.entities import Booking, BookingStatus, parse_status
from apps.bookings.domain.events import BookingCancelled, BookingConfirmed, BookingRescheduled
from apps.bookings.domain.inventory import SlotInventory
from shared.domain.exceptions import (
    CapacityExceeded,
    DateBlackedOut,
    InvalidDate,
    InvalidDetails,
    InvalidTransition,
    NotFound,
    PreparationConflict,
)
from shared.domain.value_objects import CalendarRange, TimeOfDay


def make_booking(**overrides) -> Booking:
    values = {
        "booking_code": "ABCD1234",
        "package_id": 1,
        "client_id": 2,
        "wedding_date": date(2030, 6, 10),
        "location": "Old Town Hall",
    }
    values.update(overrides)
    return Booking(**values)


# ===== SlotInventory =====

def test_inventory_available_slots():
    assert SlotInventory(total=3, booked=1).available == 2
    assert SlotInventory(total=1, booked=1).available == 0


def test_inventory_overbooked_has_no_available_slots():
    inventory = SlotInventory(total=1, booked=2)

    assert inventory.is_overbooked
    assert inventory.available == 0


def test_inventory_rejects_negative_counters():
    with pytest.raises(ValueError):
        SlotInventory(total=-1)
    with pytest.raises(ValueError):
        SlotInventory(total=1, booked=-1)


# ===== Preparation periods =====

def test_preparation_dates_follow_each_wedding():
    weddings = [date(2030, 6, 10)]

    assert preparation_dates(weddings, 3) == {
        date(2030, 6, 11),
        date(2030, 6, 12),
        date(2030, 6, 13),
    }


def test_zero_preparation_days_block_nothing():
    assert preparation_dates([date(2030, 6, 10)], 0) == set()
    assert not in_preparation_period(date(2030, 6, 11), [date(2030, 6, 10)], 0)


def test_preparation_dates_clipped_to_window():
    blocked = preparation_dates(
        [date(2030, 6, 10)], 3, start=date(2030, 6, 12), end=date(2030, 6, 12)
    )

    assert blocked == {date(2030, 6, 12)}


def test_in_preparation_period_bounds():
    weddings = [date(2030, 6, 10)]

    assert not in_preparation_period(date(2030, 6, 10), weddings, 3)
    assert in_preparation_period(date(2030, 6, 11), weddings, 3)
    assert in_preparation_period(date(2030, 6, 13), weddings, 3)
    assert not in_preparation_period(date(2030, 6, 14), weddings, 3)


# ===== Decision order =====

def test_inactive_package_wins_over_everything():
    verdict = decide(False, "holiday", True, SlotInventory(total=5))

    assert verdict.status == VerdictStatus.NOT_FOUND
    assert verdict.reason == PACKAGE_UNAVAILABLE_REASON
    assert (verdict.total_slots, verdict.available_slots) == (0, 0)
    assert isinstance(verdict.as_error(), NotFound)


def test_blackout_wins_over_preparation_and_capacity():
    verdict = decide(True, "holiday", True, SlotInventory(total=5))

    assert verdict.is_blocked
    assert not verdict.is_preparation_period
    assert verdict.reason == "holiday"
    assert isinstance(verdict.as_error(), DateBlackedOut)


def test_blackout_without_reason_uses_default_message():
    verdict = decide(True, "", False, SlotInventory(total=5))

    assert verdict.reason == BLACKOUT_DEFAULT_REASON


def test_preparation_wins_over_capacity():
    verdict = decide(True, None, True, SlotInventory(total=5))

    assert verdict.is_blocked and verdict.is_preparation_period
    assert verdict.reason == PREPARATION_REASON
    assert isinstance(verdict.as_error(), PreparationConflict)


def test_capacity_decides_last():
    available = decide(True, None, False, SlotInventory(total=3, booked=1))
    exhausted = decide(True, None, False, SlotInventory(total=1, booked=1))

    assert available.available and available.available_slots == 2
    assert available.as_error() is None
    assert not exhausted.available
    assert exhausted.reason == NO_SLOTS_REASON
    assert isinstance(exhausted.as_error(), CapacityExceeded)


# ===== Booking aggregate =====

def test_booking_happy_path_records_events():
    booking = make_booking()

    booking.confirm("bring flowers")
    booking.complete()

    assert booking.status == BookingStatus.COMPLETED
    assert booking.notes == "bring flowers"
    assert booking.confirmed_at is not None and booking.completed_at is not None
    assert isinstance(booking.events[0], BookingConfirmed)


@pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.CONFIRMED])
def test_live_bookings_can_be_cancelled(status):
    booking = make_booking(status=status)

    booking.cancel("changed plans")

    assert booking.status == BookingStatus.CANCELLED
    event = booking.events[-1]
    assert isinstance(event, BookingCancelled)
    assert event.old_status == status.value
    assert event.reason == "changed plans"


def test_pending_booking_cannot_complete():
    with pytest.raises(InvalidTransition):
        make_booking().complete()


@pytest.mark.parametrize("status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
def test_terminal_bookings_reject_transitions(status):
    booking = make_booking(status=status)

    for target in (BookingStatus.CONFIRMED, BookingStatus.COMPLETED, BookingStatus.CANCELLED):
        with pytest.raises(InvalidTransition):
            booking.transition_to(target)


def test_transition_back_to_pending_is_rejected():
    with pytest.raises(InvalidTransition):
        make_booking().transition_to(BookingStatus.PENDING)


def test_live_statuses_hold_a_slot():
    booking = make_booking()
    assert booking.holds_slot

    booking.confirm()
    assert booking.holds_slot

    booking.cancel()
    assert not booking.holds_slot


def test_reschedule_only_while_pending():
    booking = make_booking()
    booking.reschedule(date(2030, 6, 20))

    assert booking.wedding_date == date(2030, 6, 20)
    event = booking.events[-1]
    assert isinstance(event, BookingRescheduled)
    assert (event.old_date, event.new_date) == (date(2030, 6, 10), date(2030, 6, 20))

    booking.confirm()
    with pytest.raises(InvalidTransition):
        booking.reschedule(date(2030, 6, 25))


def test_update_details_can_clear_time():
    booking = make_booking(wedding_time=TimeOfDay(time(16, 0)))

    booking.update_details(location="Lake pavilion", clear_time=True)

    assert booking.location == "Lake pavilion"
    assert booking.wedding_time is None


def test_blank_location_is_invalid_details():
    with pytest.raises(InvalidDetails):
        make_booking(location=" ")
    with pytest.raises(InvalidDetails):
        make_booking().update_details(location="")


def test_parse_status_rejects_unknown_values():
    assert parse_status("confirmed") == BookingStatus.CONFIRMED
    with pytest.raises(InvalidTransition):
        parse_status("archived")


def test_event_to_dict_is_serializable_payload():
    booking = make_booking()
    booking.confirm()

    payload = booking.events[0].to_dict()

    assert payload["event_type"] == "BookingConfirmed"
    assert payload["wedding_date"] == "2030-06-10"
    assert payload["package_id"] == 1


# ===== Value objects =====

@pytest.mark.parametrize("raw,expected", [
    ("09:30", "09:30"),
    ("9:05", "09:05"),
    ("23:59:59", "23:59"),
    (time(18, 0), "18:00"),
])
def test_time_of_day_parse(raw, expected):
    assert str(TimeOfDay.parse(raw)) == expected


@pytest.mark.parametrize("raw", ["24:00", "12:60", "noon", "1230"])
def test_time_of_day_rejects_malformed(raw):
    with pytest.raises(InvalidDate):
        TimeOfDay.parse(raw)


def test_time_of_day_empty_is_none():
    assert TimeOfDay.parse(None) is None
    assert TimeOfDay.parse("") is None


def test_calendar_range_is_inclusive_and_capped():
    window = CalendarRange(date(2030, 1, 1), date(2030, 12, 31))

    assert len(window) == 365
    capped = window.capped(100)
    assert len(capped) == 100
    assert capped.end_date == date(2030, 4, 10)
    assert list(CalendarRange(date(2030, 1, 1), date(2030, 1, 1))) == [date(2030, 1, 1)]


def test_calendar_range_rejects_reversed_bounds():
    with pytest.raises(InvalidDate):
        CalendarRange(date(2030, 1, 2), date(2030, 1, 1))
