from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from shared.geo import encode_geohash
from shared.models import ListingLocation

KM_PER_DEGREE_LAT = 6371.0 * 3.141592653589793 / 180.0

TORONTO = (43.65, -79.38)


def north_of(lat: float, lon: float, km: float) -> tuple[float, float]:
    return (lat + km / KM_PER_DEGREE_LAT, lon)


def make_listing(listing_id: str, lat: float | None, lon: float | None, **fields: Any) -> ListingLocation:
    if "geohash" in fields:
        geohash = fields.pop("geohash")
    elif lat is not None and lon is not None:
        geohash = encode_geohash(lat, lon, 10)
    else:
        geohash = None
    data = {
        "id"        : listing_id,
        "latitude"  : lat,
        "longitude" : lon,
        "geohash"   : geohash,
        "rate"      : 5.0,
        "address"   : f"{listing_id} Main St",
        "city"      : "Toronto",
        "state"     : "ON",
        "zip_code"  : "M5H 2N2",
        "country"   : "CA",
        "date"      : "2026-05-01",
        "start_time": "08:00",
        "end_time"  : "20:00",
    }
    data.update(fields)
    return ListingLocation(**data)


class FakeListingStore:
    """In-memory stand-in for the listing table, answering range and equality queries."""

    def __init__(self, listings: list[ListingLocation]):
        self.listings = list(listings)
        self.range_calls: list[Any] = []
        self.field_calls: list[tuple[str, str]] = []

    def query_by_geohash_range(self, bounds):
        self.range_calls.append(bounds)
        return [l for l in self.listings if l.geohash and bounds.contains(l.geohash)]

    def query_by_field(self, field: str, value: str):
        self.field_calls.append((field, value))
        return [l for l in self.listings if getattr(l, field) == value]


@pytest.fixture
def toronto_listings() -> list[ListingLocation]:
    five    = north_of(*TORONTO, 5)
    fifteen = north_of(*TORONTO, 15)
    return [
        make_listing("far", *fifteen),
        make_listing("near", *five),
    ]
