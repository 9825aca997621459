import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from shared.availability import parse_interval
from shared.database import TABLE_BOOKINGS, TABLE_LISTINGS, get_table_client
from shared.errors import EngineError
from shared.models import BookingStatus, ExistingBooking, GeoBoundingRange, ListingLocation

logger = logging.getLogger(__name__)

LISTING_PARTITION = "listing"
QUERYABLE_FIELDS  = {"city", "state", "country", "zip_code"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_listing(ent: Dict[str, Any]) -> Optional[ListingLocation]:
    listing_id = ent.get("RowKey")
    if not listing_id:
        return None

    try:
        return ListingLocation(
            id            = listing_id,
            latitude      = ent.get("lat"),
            longitude     = ent.get("lon"),
            geohash       = ent.get("geohash"),
            rate          = float(ent.get("rate") or 0.0),
            address       = ent.get("address") or "",
            city          = ent.get("city") or "",
            state         = ent.get("state") or "",
            zip_code      = ent.get("zip_code") or "",
            country       = ent.get("country") or "",
            date          = ent.get("date"),
            start_time    = ent.get("start_time"),
            end_time      = ent.get("end_time"),
            owner_id      = ent.get("owner_id"),
            contact_email = ent.get("contact_email"),
            description   = ent.get("description"),
            is_active     = bool(ent.get("is_active", True)),
        )
    except (TypeError, ValueError) as e:
        logger.warning("Skipping malformed listing entity %s: %s", listing_id, e)
        return None


def _from_listing(listing: ListingLocation) -> Dict[str, Any]:
    return {
        "PartitionKey" : LISTING_PARTITION,
        "RowKey"       : listing.id,
        "lat"          : listing.latitude,
        "lon"          : listing.longitude,
        "geohash"      : listing.geohash,
        "rate"         : listing.rate,
        "address"      : listing.address,
        "city"         : listing.city,
        "state"        : listing.state,
        "zip_code"     : listing.zip_code,
        "country"      : listing.country,
        "date"         : listing.date,
        "start_time"   : listing.start_time,
        "end_time"     : listing.end_time,
        "owner_id"     : listing.owner_id,
        "contact_email": listing.contact_email,
        "description"  : listing.description,
        "is_active"    : listing.is_active,
        "updated_at"   : _now_iso(),
    }


def _to_booking(ent: Dict[str, Any]) -> Optional[ExistingBooking]:
    try:
        return ExistingBooking(
            id         = ent.get("RowKey"),
            listing_id = ent.get("PartitionKey"),
            date       = ent.get("date"),
            interval   = parse_interval(ent.get("start_time"), ent.get("end_time")),
            status     = BookingStatus((ent.get("status") or "pending").lower()),
        )
    except (EngineError, TypeError, ValueError) as e:
        logger.warning("Skipping malformed booking entity %s: %s", ent.get("RowKey"), e)
        return None


def _collect(entities, convert) -> List[Any]:
    results = []
    for ent in entities:
        item = convert(ent)
        if item is not None:
            results.append(item)
    return results


def query_by_geohash_range(bounds: GeoBoundingRange) -> List[ListingLocation]:
    client   = get_table_client(TABLE_LISTINGS)
    entities = client.query_entities(
        "PartitionKey eq @pk and geohash ge @start and geohash lt @end and is_active eq true",
        parameters={
            "pk"   : LISTING_PARTITION,
            "start": bounds.start_prefix,
            "end"  : bounds.end_prefix,
        },
    )
    return _collect(entities, _to_listing)


def query_by_field(field: str, value: str) -> List[ListingLocation]:
    if field not in QUERYABLE_FIELDS:
        raise ValueError(f"Listings cannot be filtered by {field!r}")

    client   = get_table_client(TABLE_LISTINGS)
    entities = client.query_entities(
        f"PartitionKey eq @pk and {field} eq @value and is_active eq true",
        parameters={"pk": LISTING_PARTITION, "value": value},
    )
    return _collect(entities, _to_listing)


def get_listing(listing_id: str) -> Optional[ListingLocation]:
    client   = get_table_client(TABLE_LISTINGS)
    entities = list(client.query_entities(
        "PartitionKey eq @pk and RowKey eq @id",
        parameters={"pk": LISTING_PARTITION, "id": listing_id},
    ))
    if not entities:
        return None
    return _to_listing(entities[0])


def upsert_listing(listing: ListingLocation) -> ListingLocation:
    client = get_table_client(TABLE_LISTINGS)
    client.upsert_entity(_from_listing(listing))
    return listing


def new_listing_id() -> str:
    return str(uuid.uuid4())


def fetch_approved_bookings(listing_id: str, date: str) -> List[ExistingBooking]:
    client   = get_table_client(TABLE_BOOKINGS)
    entities = client.query_entities(
        "PartitionKey eq @listing and date eq @date and status eq @status",
        parameters={
            "listing": listing_id,
            "date"   : date,
            "status" : BookingStatus.APPROVED.value,
        },
    )
    return _collect(entities, _to_booking)
