"""Booking-time validation and pricing for a single listing/date.

``validate_and_price`` runs parse -> order -> containment -> conflict -> pricing and
raises the first failure it meets. Only approved bookings reserve a slot.
"""
import logging
import re
from datetime import date as date_type
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional

from shared.errors import (
    EndBeforeStart,
    InvalidRate,
    InvalidTimeFormat,
    OutsideAvailableHours,
    TimeSlotConflict,
)
from shared.models import (
    AvailabilityWindow,
    BookingRequest,
    BookingStatus,
    ExistingBooking,
    ListingLocation,
    PricedBooking,
    TimeInterval,
)

logger = logging.getLogger(__name__)

MIN_RATE  = Decimal("0.01")
MAX_RATE  = Decimal("999.99")
_CENTS    = Decimal("0.01")
_RATE_RE  = re.compile(r"^\d+(\.\d{0,2})?$|^\.\d{1,2}$")


def parse_time(value: str) -> int:
    """Minutes since midnight for an ``HH:MM`` string."""
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Time must be a string in HH:MM format, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isascii() and p.isdigit() and len(p) <= 2 for p in parts):
        raise InvalidTimeFormat(f"Time {value!r} is not in HH:MM format", {"value": value})

    hours, minutes = int(parts[0]), int(parts[1])
    if not 0 <= hours <= 23:
        raise InvalidTimeFormat(f"Hour {hours} outside 0-23", {"value": value})
    if not 0 <= minutes <= 59:
        raise InvalidTimeFormat(f"Minute {minutes} outside 0-59", {"value": value})

    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    return format_minutes(parse_time(value))


def parse_interval(start: str, end: str) -> TimeInterval:
    start_minutes = parse_time(start)
    end_minutes   = parse_time(end)

    if not start_minutes < end_minutes:
        raise EndBeforeStart(
            f"End time {end} must be after start time {start}",
            {"start_time": start, "end_time": end},
        )

    return TimeInterval(start_minutes=start_minutes, end_minutes=end_minutes)


def parse_iso_date(value: Optional[str]) -> Optional[str]:
    """``YYYY-MM-DD`` for a valid ISO date string, else None."""
    if not isinstance(value, str):
        return None
    try:
        return date_type.fromisoformat(value.strip()).isoformat()
    except ValueError:
        return None


def intervals_overlap(a: TimeInterval, b: TimeInterval) -> bool:
    return a.overlaps(b)


def parse_rate(text: str) -> float:
    """Hourly rate from user input such as ``"12.5"`` or ``"$ 7.25"``."""
    cleaned = (text or "").strip()
    if cleaned.startswith("$"):
        cleaned = cleaned[1:].strip()

    if not _RATE_RE.match(cleaned):
        raise InvalidRate(f"Rate {text!r} is not a number with at most two decimals", {"value": text})

    try:
        value = Decimal(cleaned)
    except InvalidOperation as e:
        raise InvalidRate(f"Rate {text!r} is not a number", {"value": text}) from e

    if value < MIN_RATE or value > MAX_RATE:
        raise InvalidRate(
            f"Rate must be between {MIN_RATE} and {MAX_RATE}",
            {"value": text, "min": float(MIN_RATE), "max": float(MAX_RATE)},
        )

    return float(value)


def price_for(interval: TimeInterval, rate: float) -> float:
    hours = Decimal(interval.duration_minutes) / Decimal(60)
    total = hours * Decimal(str(rate))
    return float(total.quantize(_CENTS, rounding=ROUND_HALF_UP))


def blocking_bookings(listing_id: str, date: str, existing: Iterable[ExistingBooking]):
    for booking in existing:
        if booking.listing_id != listing_id or booking.date != date:
            continue
        if booking.status != BookingStatus.APPROVED:
            continue
        yield booking


def window_for_listing(listing: ListingLocation) -> Optional[AvailabilityWindow]:
    if not listing.start_time or not listing.end_time:
        return None
    try:
        interval = parse_interval(listing.start_time, listing.end_time)
    except (InvalidTimeFormat, EndBeforeStart) as e:
        logger.warning("Listing %s has unusable published hours: %s", listing.id, e)
        return None
    return AvailabilityWindow(date=listing.date, interval=interval)


def validate_and_price(
    listing_id: str,
    date: str,
    start_time: str,
    end_time: str,
    window: AvailabilityWindow,
    rate: float,
    existing: Optional[Iterable[ExistingBooking]] = None) -> PricedBooking:

    requested = parse_interval(start_time, end_time)

    if window.date is not None and window.date != date:
        raise OutsideAvailableHours(
            f"Listing is not available on {date}",
            {"available_date": window.date, "requested_date": date},
        )

    if not window.interval.contains(requested):
        raise OutsideAvailableHours(
            "Requested time is outside the listing's available hours",
            {
                "available_start": format_minutes(window.interval.start_minutes),
                "available_end"  : format_minutes(window.interval.end_minutes),
            },
        )

    for booking in blocking_bookings(listing_id, date, existing or []):
        if intervals_overlap(requested, booking.interval):
            logger.info("booking conflict listing=%s date=%s with=%s", listing_id, date, booking.id)
            raise TimeSlotConflict(
                "This time slot overlaps with an existing booking",
                {
                    "booking_id": booking.id,
                    "booked_start": format_minutes(booking.interval.start_minutes),
                    "booked_end"  : format_minutes(booking.interval.end_minutes),
                },
            )

    request = BookingRequest(listing_id=listing_id, date=date, requested=requested)
    return PricedBooking(**request.model_dump(), total_price=price_for(requested, rate))
