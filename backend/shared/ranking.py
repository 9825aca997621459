import logging
from typing import Iterable, List, Optional

from shared.geo import haversine_distance_km, is_valid_coordinate, validate_coordinate
from shared.models import Coordinate, ListingLocation, RankedListing

logger = logging.getLogger(__name__)


def _distance_or_none(center: Coordinate, listing: ListingLocation) -> Optional[float]:
    if not is_valid_coordinate(listing.latitude, listing.longitude):
        return None
    return haversine_distance_km(center, listing.coordinate)


def _to_ranked(listing: ListingLocation, distance_km: Optional[float]) -> RankedListing:
    data = listing.model_dump()
    data.pop("distance_km", None)
    return RankedListing(**data, distance_km=distance_km)


def attach_distances(center: Optional[Coordinate], candidates: Iterable[ListingLocation]) -> List[RankedListing]:
    """Distance for every candidate that has one, keeping all candidates in input order."""
    coord = validate_coordinate(center.latitude, center.longitude) if center else None
    results = []
    for listing in candidates:
        distance = _distance_or_none(coord, listing) if coord else None
        results.append(_to_ranked(listing, distance))
    return results


def rank_by_distance(
    center: Coordinate,
    candidates: Iterable[ListingLocation],
    max_distance_km: float) -> List[RankedListing]:

    coord   = validate_coordinate(center.latitude, center.longitude)
    results = []
    dropped = 0

    for listing in candidates:
        distance = _distance_or_none(coord, listing)
        if distance is None:
            dropped += 1
            continue
        if distance <= max_distance_km:
            results.append(_to_ranked(listing, distance))

    if dropped:
        logger.warning("rank_by_distance dropped %d candidate(s) without a usable coordinate", dropped)

    # sorted() is stable, ties keep their input order
    return sorted(results, key=lambda r: r.distance_km)
