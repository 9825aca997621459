import logging
import math
import azure.functions as func

from datetime            import datetime, timezone
from typing              import TYPE_CHECKING, Any, Dict, List, Optional
from api.geocoding       import resolve_place
from shared              import store
from shared.availability import format_minutes, parse_interval, parse_iso_date, parse_rate
from shared.config       import get_nearby_radius_km
from shared.errors       import EngineError
from shared.geo          import encode_geohash, validate_coordinate
from shared.models       import ListingLocation, RankedListing, SearchQuery, Specificity
from shared.search       import normalize_region, query_specificity, search
from utils.response      import engine_error_response, error_response, success_response

if TYPE_CHECKING:
    from azure.functions import FunctionApp

logger = logging.getLogger(__name__)

LISTING_GEOHASH_PRECISION = 10
REQUIRED_ADDRESS_FIELDS   = ("address", "city", "state", "zip_code", "country")


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def _radius_param(req: func.HttpRequest) -> Optional[float]:
    raw = req.params.get("radius_km")
    if raw is None or raw == "":
        return None
    radius = float(raw)
    if not math.isfinite(radius) or radius <= 0:
        raise ValueError("radius_km must be a positive number")
    return radius


def _dump(results: List[RankedListing]) -> List[Dict[str, Any]]:
    return [r.model_dump(mode="json") for r in results]


def handle_nearby(req: func.HttpRequest) -> func.HttpResponse:
    lat = req.params.get("lat")
    lon = req.params.get("lon")

    if not lat or not lon:
        return error_response("Missing required parameters: lat and lon", 400)

    try:
        radius = _radius_param(req) or get_nearby_radius_km()
    except ValueError:
        return error_response("Invalid parameter format", 400)

    try:
        center  = validate_coordinate(lat, lon)
        results = search(
            SearchQuery(),
            center,
            Specificity.NARROW,
            range_query    = store.query_by_geohash_range,
            field_query    = store.query_by_field,
            radius_km      = radius,
            raise_if_empty = _flag(req.params.get("strict")),
        )
    except EngineError as e:
        return engine_error_response(e)

    return success_response(_dump(results))


def handle_search(req: func.HttpRequest) -> func.HttpResponse:
    query = SearchQuery(
        text     = (req.params.get("q") or "").strip() or None,
        city     = (req.params.get("city") or "").strip() or None,
        state    = (req.params.get("state") or "").strip() or None,
        country  = (req.params.get("country") or "").strip() or None,
        zip_code = (req.params.get("zip") or "").strip() or None,
    )

    if query.is_empty():
        return error_response("Please enter at least one search field.", 400)

    try:
        radius = _radius_param(req)
    except ValueError:
        return error_response("Invalid parameter format", 400)

    center  = None
    address = None

    if query.text is not None:
        place = resolve_place(query.text)
        if not place:
            return error_response("Could not find that location", 404)
        center, address, specificity = place.coordinate, place.address, place.specificity
    else:
        # state/country alone is filtered directly, anything finer is geocoded
        specificity = query_specificity(query)
        if specificity == Specificity.NARROW:
            place = resolve_place(query.to_text())
            if not place:
                return error_response("Could not find that location", 404)
            center, address = place.coordinate, place.address

    try:
        results = search(
            query,
            center,
            specificity,
            range_query    = store.query_by_geohash_range,
            field_query    = store.query_by_field,
            radius_km      = radius,
            address        = address,
            raise_if_empty = _flag(req.params.get("strict")),
        )
    except EngineError as e:
        return engine_error_response(e)

    return success_response({
        "strategy": specificity.value,
        "center"  : center.model_dump() if center else None,
        "listings": _dump(results),
    })


def _create_listing(payload: Dict[str, Any]) -> ListingLocation:
    fields  = {f: str(payload.get(f) or "").strip() for f in REQUIRED_ADDRESS_FIELDS}
    missing = [f for f, v in fields.items() if not v]
    if missing:
        raise ValueError(f"Please fill out all address fields: {', '.join(missing)}")

    rate     = parse_rate(str(payload.get("rate") or ""))
    interval = parse_interval(str(payload.get("start_time") or ""), str(payload.get("end_time") or ""))

    address  = fields["address"]
    city     = normalize_region("city", fields["city"])
    state    = normalize_region("state", fields["state"])
    zip_code = normalize_region("zip_code", fields["zip_code"])
    country  = normalize_region("country", fields["country"])

    date = datetime.now(timezone.utc).date().isoformat()
    if payload.get("date"):
        date = parse_iso_date(payload.get("date"))
        if date is None:
            raise ValueError("Invalid date (expected YYYY-MM-DD)")

    lat = payload.get("lat")
    lon = payload.get("lon")
    if lat is None or lon is None:
        place = resolve_place(f"{address}, {city}, {state}, {zip_code}, {country}")
        if not place:
            raise ValueError("Could not verify this address location.")
        lat = place.coordinate.latitude
        lon = place.coordinate.longitude
        # store the same region codes a broad search resolves to
        state   = place.address.state_key or state
        country = place.address.country_key or country

    coordinate = validate_coordinate(lat, lon)

    listing = ListingLocation(
        id            = payload.get("id") or store.new_listing_id(),
        latitude      = coordinate.latitude,
        longitude     = coordinate.longitude,
        geohash       = encode_geohash(coordinate.latitude, coordinate.longitude, LISTING_GEOHASH_PRECISION),
        rate          = rate,
        address       = address,
        city          = city,
        state         = state,
        zip_code      = zip_code,
        country       = country,
        date          = date,
        start_time    = format_minutes(interval.start_minutes),
        end_time      = format_minutes(interval.end_minutes),
        owner_id      = payload.get("owner_id"),
        contact_email = (payload.get("contact_email") or "").strip() or None,
        description   = (payload.get("description") or "").strip() or None,
        is_active     = True,
    )
    return store.upsert_listing(listing)


def handle_create_listing(req: func.HttpRequest) -> func.HttpResponse:
    try:
        payload = req.get_json()
    except ValueError:
        return error_response("Invalid JSON body", 400)

    if not isinstance(payload, dict):
        return error_response("Invalid JSON body", 400)

    try:
        listing = _create_listing(payload)
    except EngineError as e:
        return engine_error_response(e)
    except ValueError as e:
        return error_response(str(e), 400)

    logger.info("listing created id=%s geohash=%s", listing.id, listing.geohash)
    return success_response(listing.model_dump(mode="json"), 201)


def register_routes(app: "FunctionApp"):

    @app.route(route="listings/nearby", methods=["GET"])
    def nearby_listings(req: func.HttpRequest) -> func.HttpResponse:
        try:
            return handle_nearby(req)
        except Exception as e:
            logger.exception("listings/nearby failed")
            return error_response(f"Internal server error: {str(e)}", 500)

    @app.route(route="listings/search", methods=["GET"])
    def search_listings(req: func.HttpRequest) -> func.HttpResponse:
        try:
            return handle_search(req)
        except Exception as e:
            logger.exception("listings/search failed")
            return error_response(f"Internal server error: {str(e)}", 500)

    @app.route(route="listings", methods=["POST"])
    def create_listing(req: func.HttpRequest) -> func.HttpResponse:
        try:
            return handle_create_listing(req)
        except Exception as e:
            logger.exception("listings create failed")
            return error_response(f"Internal server error: {str(e)}", 500)
