import logging
from typing import List

from shared.geo import encode_geohash, validate_coordinate
from shared.models import Coordinate, GeoBoundingRange

logger = logging.getLogger(__name__)

# sorts after every geohash symbol
HIGH_SENTINEL = "~"

# (width_m, height_m) of a geohash cell at the equator, per precision
CELL_SIZE_METERS = {
    1 : (5_009_400.0, 4_992_600.0),
    2 : (1_252_300.0,   624_100.0),
    3 : (  156_500.0,   156_000.0),
    4 : (   39_100.0,    19_500.0),
    5 : (    4_890.0,     4_890.0),
    6 : (    1_220.0,       610.0),
    7 : (      153.0,       153.0),
    8 : (       38.2,        19.1),
    9 : (        4.77,        4.77),
    10: (        1.19,        0.596),
    11: (        0.149,       0.149),
    12: (        0.0372,      0.0186),
}


def precision_for_radius(radius_meters: float) -> int:
    """Finest precision whose cell is at least as wide and tall as the search circle."""
    if radius_meters < 0:
        raise ValueError(f"Search radius must be >= 0, got {radius_meters}")

    diameter = 2 * radius_meters
    chosen   = 1
    for precision in sorted(CELL_SIZE_METERS):
        width, height = CELL_SIZE_METERS[precision]
        if min(width, height) >= diameter:
            chosen = precision
        else:
            break
    return chosen


def query_bounds(center: Coordinate, radius_meters: float) -> List[GeoBoundingRange]:
    """Geohash prefix ranges a store must scan to find listings around ``center``.

    Only the centre's own cell is returned. Listings inside the radius but across
    the cell edge are not covered; querying the eight neighbouring cells would close
    that gap and would add more ranges to the returned list.
    """
    coord     = validate_coordinate(center.latitude, center.longitude)
    precision = precision_for_radius(radius_meters)
    prefix    = encode_geohash(coord.latitude, coord.longitude, precision)

    logger.debug("query_bounds radius_m=%s precision=%d prefix=%s", radius_meters, precision, prefix)

    return [GeoBoundingRange(start_prefix=prefix, end_prefix=prefix + HIGH_SENTINEL)]
