from __future__ import annotations

import pytest

from shared.availability import (
    format_minutes,
    intervals_overlap,
    normalize_time,
    parse_interval,
    parse_iso_date,
    parse_rate,
    parse_time,
    price_for,
    validate_and_price,
    window_for_listing,
)
from shared.errors import (
    EndBeforeStart,
    InvalidRate,
    InvalidTimeFormat,
    OutsideAvailableHours,
    TimeSlotConflict,
)
from shared.models import AvailabilityWindow, BookingStatus, ExistingBooking, TimeInterval

from conftest import make_listing

DAY = "2026-05-01"


def interval(start: str, end: str) -> TimeInterval:
    return parse_interval(start, end)


def booking(start: str, end: str, status=BookingStatus.APPROVED, listing_id="L1", date=DAY) -> ExistingBooking:
    return ExistingBooking(
        id=f"{listing_id}-{start}",
        listing_id=listing_id,
        date=date,
        interval=interval(start, end),
        status=status,
    )


@pytest.fixture
def window() -> AvailabilityWindow:
    return AvailabilityWindow(date=DAY, interval=interval("08:00", "20:00"))


@pytest.mark.parametrize(
    "value,expected",
    [("00:00", 0), ("09:30", 570), ("23:59", 1439), (" 7:05 ", 425), ("9:5", 545)],
)
def test_parse_time(value, expected):
    assert parse_time(value) == expected


@pytest.mark.parametrize(
    "value",
    ["", "0900", "09:00:00", "9h00", "ab:cd", "24:00", "12:60", "-1:30", "12:", ":30", "１２:００", None],
)
def test_parse_time_rejects_malformed(value):
    with pytest.raises(InvalidTimeFormat):
        parse_time(value)


def test_format_and_normalize():
    assert format_minutes(545) == "09:05"
    assert normalize_time("7:5") == "07:05"


@pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("11:00", "10:59")])
def test_end_must_follow_start(start, end):
    with pytest.raises(EndBeforeStart):
        parse_interval(start, end)


def test_touching_intervals_do_not_overlap():
    assert not intervals_overlap(interval("09:00", "10:00"), interval("10:00", "11:00"))
    assert not intervals_overlap(interval("10:00", "11:00"), interval("09:00", "10:00"))


def test_one_minute_overlap_conflicts():
    assert intervals_overlap(interval("09:00", "10:01"), interval("10:00", "11:00"))
    assert intervals_overlap(interval("10:00", "11:00"), interval("09:00", "10:01"))


def test_containing_interval_overlaps():
    assert intervals_overlap(interval("08:00", "18:00"), interval("12:00", "13:00"))


def test_pricing_example(window):
    priced = validate_and_price("L1", DAY, "09:00", "11:30", window, 10.00, [])
    assert priced.total_price == 25.00
    assert priced.requested == interval("09:00", "11:30")
    assert priced.listing_id == "L1"
    assert priced.date == DAY


def test_price_rounds_half_up():
    # 1 minute at 0.30/h is 0.005
    assert price_for(interval("10:00", "10:01"), 0.30) == 0.01
    assert price_for(interval("10:00", "10:20"), 9.99) == 3.33


def test_end_to_end_conflict_and_success():
    listing  = make_listing("L1", 43.6532, -79.3832, rate=5.0, start_time="08:00", end_time="20:00", date=DAY)
    window   = window_for_listing(listing)
    existing = [booking("12:00", "13:00")]

    with pytest.raises(TimeSlotConflict):
        validate_and_price("L1", DAY, "12:30", "13:30", window, listing.rate, existing)

    priced = validate_and_price("L1", DAY, "09:00", "11:00", window, listing.rate, existing)
    assert priced.total_price == 10.00


def test_adjacent_to_existing_booking_is_allowed(window):
    priced = validate_and_price("L1", DAY, "13:00", "14:00", window, 4.0, [booking("12:00", "13:00")])
    assert priced.total_price == 4.00


@pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.REJECTED, BookingStatus.CANCELLED])
def test_non_approved_bookings_never_block(window, status):
    priced = validate_and_price("L1", DAY, "12:00", "13:00", window, 5.0, [booking("12:00", "13:00", status)])
    assert priced.total_price == 5.00


def test_other_listing_or_date_never_blocks(window):
    existing = [
        booking("12:00", "13:00", listing_id="L2"),
        booking("12:00", "13:00", date="2026-05-02"),
    ]
    assert validate_and_price("L1", DAY, "12:00", "13:00", window, 5.0, existing).total_price == 5.00


@pytest.mark.parametrize("start,end", [("07:30", "09:00"), ("19:00", "20:30"), ("06:00", "21:00")])
def test_outside_available_hours(window, start, end):
    with pytest.raises(OutsideAvailableHours):
        validate_and_price("L1", DAY, start, end, window, 5.0, [])


def test_window_bounds_are_inclusive(window):
    assert validate_and_price("L1", DAY, "08:00", "20:00", window, 1.0, []).total_price == 12.00


def test_wrong_date_is_outside_available_hours(window):
    with pytest.raises(OutsideAvailableHours):
        validate_and_price("L1", "2026-05-02", "09:00", "10:00", window, 5.0, [])


def test_undated_window_accepts_any_date():
    window = AvailabilityWindow(interval=interval("08:00", "20:00"))
    assert validate_and_price("L1", "2030-01-01", "09:00", "10:00", window, 5.0).total_price == 5.00


def test_first_failure_wins(window):
    # malformed time is reported before the conflict it would also have
    with pytest.raises(InvalidTimeFormat):
        validate_and_price("L1", DAY, "12:3O", "13:30", window, 5.0, [booking("12:00", "13:00")])

    with pytest.raises(EndBeforeStart):
        validate_and_price("L1", DAY, "22:00", "21:00", window, 5.0, [])


def test_conflict_error_names_the_booked_slot(window):
    with pytest.raises(TimeSlotConflict) as exc:
        validate_and_price("L1", DAY, "12:30", "13:30", window, 5.0, [booking("12:00", "13:00")])

    details = exc.value.to_details()
    assert details["code"] == "time_slot_conflict"
    assert details["booked_start"] == "12:00"
    assert exc.value.status_code == 409


def test_window_for_listing_with_bad_hours():
    assert window_for_listing(make_listing("x", 43.0, -79.0, start_time="late", end_time="20:00")) is None
    assert window_for_listing(make_listing("x", 43.0, -79.0, start_time=None)) is None


@pytest.mark.parametrize(
    "text,expected",
    [("10", 10.0), ("12.5", 12.5), ("$7.25", 7.25), (" $ 0.01 ", 0.01), ("999.99", 999.99), (".5", 0.5), ("3.", 3.0)],
)
def test_parse_rate(text, expected):
    assert parse_rate(text) == expected


@pytest.mark.parametrize("text", ["", ".", "abc", "1.234", "1.2.3", "-5", "0", "0.00", "1000", "12,50", None])
def test_parse_rate_rejects(text):
    with pytest.raises(InvalidRate):
        parse_rate(text)


@pytest.mark.parametrize(
    "value,expected",
    [("2026-05-01", "2026-05-01"), (" 2026-05-01 ", "2026-05-01"), ("2026-02-30", None), ("May 1", None), ("", None), (None, None)],
)
def test_parse_iso_date(value, expected):
    assert parse_iso_date(value) == expected
