import math
from typing import Tuple

from shared.errors import InvalidCoordinate
from shared.models import Coordinate

_BASE32     = "0123456789bcdefghjkmnpqrstuvwxyz"
_BASE32_MAP = {c: i for i, c in enumerate(_BASE32)}

EARTH_RADIUS_KM   = 6371.0
DEFAULT_PRECISION = 10


def validate_coordinate(latitude: float, longitude: float) -> Coordinate:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as e:
        raise InvalidCoordinate(f"Coordinate is not numeric: ({latitude}, {longitude})") from e

    if math.isnan(lat) or math.isnan(lon):
        raise InvalidCoordinate("Coordinate contains NaN")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinate(f"Latitude {lat} outside [-90, 90]", {"latitude": lat})
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinate(f"Longitude {lon} outside [-180, 180]", {"longitude": lon})

    return Coordinate(latitude=lat, longitude=lon)


def is_valid_coordinate(latitude, longitude) -> bool:
    if latitude is None or longitude is None:
        return False
    try:
        validate_coordinate(latitude, longitude)
    except InvalidCoordinate:
        return False
    return True


def encode_geohash(latitude: float, longitude: float, precision: int = DEFAULT_PRECISION) -> str:
    """Encode a point as a base-32 geohash of ``precision`` characters.

    Longitude and latitude ranges are bisected alternately, longitude first; a point
    exactly on a midpoint goes to the lower half. ``precision`` below 1 is rejected.
    """
    if precision <= 0:
        raise ValueError(f"Geohash precision must be >= 1, got {precision}")

    coord        = validate_coordinate(latitude, longitude)
    lat_interval = [-90.0, 90.0]
    lon_interval = [-180.0, 180.0]
    geohash      = []
    bits         = [16, 8, 4, 2, 1]
    bit          = 0
    ch           = 0
    even         = True

    while len(geohash) < precision:
        if even:
            mid = sum(lon_interval) / 2
            if coord.longitude > mid:
                ch |= bits[bit]
                lon_interval[0] = mid
            else:
                lon_interval[1] = mid
        else:
            mid = sum(lat_interval) / 2
            if coord.latitude > mid:
                ch |= bits[bit]
                lat_interval[0] = mid
            else:
                lat_interval[1] = mid

        even = not even
        if bit < 4:
            bit += 1
        else:
            geohash.append(_BASE32[ch])
            bit = 0
            ch = 0

    return "".join(geohash)


def encode_coordinate(coordinate: Coordinate, precision: int = DEFAULT_PRECISION) -> str:
    return encode_geohash(coordinate.latitude, coordinate.longitude, precision)


def decode_geohash_bounds(geohash: str) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Return ``((lat_min, lat_max), (lon_min, lon_max))`` of the cell."""
    lat_interval = [-90.0, 90.0]
    lon_interval = [-180.0, 180.0]
    even         = True

    for c in geohash:
        if c not in _BASE32_MAP:
            raise ValueError(f"Invalid geohash character {c!r} in {geohash!r}")
        cd = _BASE32_MAP[c]
        for mask in [16, 8, 4, 2, 1]:
            if even:
                if cd & mask:
                    lon_interval[0] = sum(lon_interval) / 2
                else:
                    lon_interval[1] = sum(lon_interval) / 2
            else:
                if cd & mask:
                    lat_interval[0] = sum(lat_interval) / 2
                else:
                    lat_interval[1] = sum(lat_interval) / 2
            even = not even

    return (lat_interval[0], lat_interval[1]), (lon_interval[0], lon_interval[1])


def decode_geohash(geohash: str) -> Tuple[float, float]:
    (lat_min, lat_max), (lon_min, lon_max) = decode_geohash_bounds(geohash)
    return ((lat_min + lat_max) / 2, (lon_min + lon_max) / 2)


def haversine_distance_km(coord_a: Coordinate, coord_b: Coordinate) -> float:
    phi1, phi2 = math.radians(coord_a.latitude), math.radians(coord_b.latitude)
    dphi       = math.radians(coord_b.latitude - coord_a.latitude)
    dlambda    = math.radians(coord_b.longitude - coord_a.longitude)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    # rounding can push a just past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_distance_meters(coord_a: Coordinate, coord_b: Coordinate) -> float:
    return haversine_distance_km(coord_a, coord_b) * 1000.0
