from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Coordinate(Frozen):
    latitude       : float
    longitude      : float

    def as_tuple(self):
        return (self.latitude, self.longitude)


class GeoBoundingRange(Frozen):
    start_prefix   : str
    end_prefix     : str

    def contains(self, geohash: str) -> bool:
        return self.start_prefix <= geohash < self.end_prefix


class Specificity(str, Enum):
    BROAD  = "broad"
    NARROW = "narrow"


class Address(Frozen):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    road           : Optional[str] = None
    house_number   : Optional[str] = None
    neighbourhood  : Optional[str] = None
    suburb         : Optional[str] = None
    village        : Optional[str] = None
    town           : Optional[str] = None
    city           : Optional[str] = None
    state          : Optional[str] = None
    postcode       : Optional[str] = None
    country        : Optional[str] = None
    country_code   : Optional[str] = None
    state_code     : Optional[str] = Field(default=None, alias="ISO3166-2-lvl4")

    @property
    def locality(self) -> Optional[str]:
        return self.city or self.town or self.village

    @property
    def state_key(self) -> Optional[str]:
        # "CA-ON" -> "ON"
        if self.state_code and "-" in self.state_code:
            return self.state_code.split("-", 1)[1].upper()
        return self.state.upper() if self.state else None

    @property
    def country_key(self) -> Optional[str]:
        value = self.country_code or self.country
        return value.upper() if value else None

    def formatted(self) -> str:
        parts = []

        if self.road:
            street = self.road
            if self.house_number:
                street = f"{self.house_number} {street}"
            parts.append(street)

        if self.locality:
            parts.append(self.locality)

        if self.state:
            parts.append(self.state)

        if self.postcode:
            parts.append(self.postcode)

        if self.country:
            parts.append(self.country)

        return ", ".join(parts)


class ResolvedPlace(Frozen):
    coordinate     : Coordinate
    specificity    : Specificity
    address        : Address
    display_name   : str = ""


class SearchQuery(Frozen):
    text           : Optional[str] = None
    city           : Optional[str] = None
    state          : Optional[str] = None
    country        : Optional[str] = None
    zip_code       : Optional[str] = None

    def is_empty(self) -> bool:
        return not any([self.text, self.city, self.state, self.country, self.zip_code])

    def to_text(self) -> str:
        if self.text:
            return self.text.strip()
        parts = [self.city, self.state, self.zip_code, self.country]
        return ", ".join(p.strip() for p in parts if p and p.strip())


class ListingLocation(Frozen):
    id             : str
    latitude       : Optional[float] = None
    longitude      : Optional[float] = None
    geohash        : Optional[str] = None
    rate           : float = 0.0
    address        : str = ""
    city           : str = ""
    state          : str = ""
    zip_code       : str = ""
    country        : str = ""
    date           : Optional[str] = None
    start_time     : Optional[str] = None
    end_time       : Optional[str] = None
    owner_id       : Optional[str] = None
    contact_email  : Optional[str] = None
    description    : Optional[str] = None
    is_active      : bool = True

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class RankedListing(ListingLocation):
    distance_km    : Optional[float] = None


class TimeInterval(Frozen):
    start_minutes  : int
    end_minutes    : int

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "TimeInterval") -> bool:
        # half-open: touching endpoints do not overlap
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def contains(self, other: "TimeInterval") -> bool:
        return self.start_minutes <= other.start_minutes and other.end_minutes <= self.end_minutes


class AvailabilityWindow(Frozen):
    date           : Optional[str] = None
    interval       : TimeInterval


class BookingRequest(Frozen):
    listing_id     : str
    date           : str
    requested      : TimeInterval


class BookingStatus(str, Enum):
    PENDING   = "pending"
    APPROVED  = "approved"
    REJECTED  = "rejected"
    CANCELLED = "cancelled"


class ExistingBooking(Frozen):
    id             : Optional[str] = None
    listing_id     : str
    date           : str
    interval       : TimeInterval
    status         : BookingStatus = BookingStatus.PENDING


class PricedBooking(BookingRequest):
    total_price    : float


class AvailabilitySummary(Frozen):
    listing_id     : str
    date           : str
    window         : Optional[AvailabilityWindow] = None
    booked         : List[TimeInterval] = []
