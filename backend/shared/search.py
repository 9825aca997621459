"""Listing search: region filter for broad places, geohash range + radius for narrow ones."""
import logging
from typing import Callable, Iterable, List, Optional, Tuple

from shared.config import get_search_radius_km
from shared.errors import NoCandidatesFound
from shared.models import (
    Address,
    Coordinate,
    GeoBoundingRange,
    ListingLocation,
    RankedListing,
    SearchQuery,
    Specificity,
)
from shared.planner import query_bounds
from shared.ranking import attach_distances, rank_by_distance

logger = logging.getLogger(__name__)

RangeQuery = Callable[[GeoBoundingRange], Iterable[ListingLocation]]
FieldQuery = Callable[[str, str], Iterable[ListingLocation]]


def normalize_region(field: str, value: str) -> str:
    value = (value or "").strip()
    if field == "city":
        return value.title()
    if field in ("state", "country"):
        return value.upper()
    return value


def classify_specificity(address: Address) -> Specificity:
    narrow_parts = [
        address.road,
        address.house_number,
        address.neighbourhood,
        address.suburb,
        address.locality,
        address.postcode,
    ]
    return Specificity.NARROW if any(narrow_parts) else Specificity.BROAD


def query_specificity(query: SearchQuery) -> Specificity:
    if query.city or query.zip_code:
        return Specificity.NARROW
    return Specificity.BROAD


def region_filter(query: SearchQuery, address: Optional[Address] = None) -> Optional[Tuple[str, str]]:
    state   = query.state or (address.state_key if address else None)
    country = query.country or (address.country_key if address else None)

    if state:
        return "state", normalize_region("state", state)
    if country:
        return "country", normalize_region("country", country)
    return None


def _active(listings: Iterable[ListingLocation]) -> List[ListingLocation]:
    return [listing for listing in listings if listing.is_active]


def _dedupe(listings: Iterable[ListingLocation]) -> List[ListingLocation]:
    seen    = set()
    results = []
    for listing in listings:
        if listing.id in seen:
            continue
        seen.add(listing.id)
        results.append(listing)
    return results


def broad_search(
    query: SearchQuery,
    center: Optional[Coordinate],
    field_query: FieldQuery,
    address: Optional[Address] = None) -> List[RankedListing]:

    region = region_filter(query, address)
    if region is None:
        logger.info("search.broad no state or country to filter on")
        return []

    field, value = region
    candidates   = _active(field_query(field, value))
    logger.info("search.broad %s=%s results=%d", field, value, len(candidates))
    return attach_distances(center, candidates)


def narrow_search(center: Coordinate, range_query: RangeQuery, radius_km: float) -> List[RankedListing]:
    candidates = []
    for bounds in query_bounds(center, radius_km * 1000.0):
        candidates.extend(range_query(bounds))

    candidates = _active(_dedupe(candidates))
    ranked     = rank_by_distance(center, candidates, radius_km)
    logger.info(
        "search.narrow center=(%.4f,%.4f) radius_km=%s candidates=%d results=%d",
        center.latitude, center.longitude, radius_km, len(candidates), len(ranked),
    )
    return ranked


def search(
    query: SearchQuery,
    center: Optional[Coordinate],
    specificity: Specificity,
    range_query: RangeQuery,
    field_query: FieldQuery,
    radius_km: Optional[float] = None,
    address: Optional[Address] = None,
    raise_if_empty: bool = False) -> List[RankedListing]:
    """Listings for a resolved place.

    A narrow place without a centre cannot be range-queried and is searched broadly.
    An empty narrow result is reported as is; it never falls back to the broad filter.
    """
    if specificity == Specificity.NARROW and center is not None:
        radius  = radius_km if radius_km is not None else get_search_radius_km()
        results = narrow_search(center, range_query, radius)
    else:
        results = broad_search(query, center, field_query, address)

    if not results and raise_if_empty:
        raise NoCandidatesFound("No driveways found in that area.", {"specificity": specificity.value})

    return results
