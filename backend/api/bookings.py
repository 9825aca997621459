import logging
import azure.functions as func

from typing              import TYPE_CHECKING
from shared              import store
from shared.availability import parse_iso_date, validate_and_price, window_for_listing
from shared.errors       import EngineError
from shared.models       import AvailabilitySummary
from utils.response      import engine_error_response, error_response, success_response

if TYPE_CHECKING:
    from azure.functions import FunctionApp

logger = logging.getLogger(__name__)


def handle_availability(req: func.HttpRequest) -> func.HttpResponse:
    listing_id = req.route_params.get("listing_id")
    if not listing_id:
        return error_response("Missing listing_id", 400)

    day = parse_iso_date(req.params.get("date"))
    if not day:
        return error_response("Missing/invalid date (expected YYYY-MM-DD)", 400)

    listing = store.get_listing(listing_id)
    if not listing:
        return error_response("Listing not found", 404)

    window = window_for_listing(listing)
    if window is not None and window.date is not None and window.date != day:
        window = None

    bookings = sorted(store.fetch_approved_bookings(listing_id, day), key=lambda b: b.interval.start_minutes)
    summary  = AvailabilitySummary(
        listing_id = listing_id,
        date       = day,
        window     = window,
        booked     = [b.interval for b in bookings],
    )
    return success_response(summary.model_dump(mode="json"))


def handle_quote(req: func.HttpRequest) -> func.HttpResponse:
    try:
        payload = req.get_json()
    except ValueError:
        return error_response("Invalid JSON body", 400)

    if not isinstance(payload, dict):
        return error_response("Invalid JSON body", 400)

    listing_id = str(payload.get("listing_id") or "").strip()
    if not listing_id:
        return error_response("Missing listing_id", 400)

    day = parse_iso_date(payload.get("date"))
    if not day:
        return error_response("Missing/invalid date (expected YYYY-MM-DD)", 400)

    listing = store.get_listing(listing_id)
    if not listing or not listing.is_active:
        return error_response("Listing not found", 404)

    window = window_for_listing(listing)
    if window is None:
        return error_response("Listing has no published availability", 422)

    try:
        priced = validate_and_price(
            listing_id,
            day,
            str(payload.get("start_time") or ""),
            str(payload.get("end_time") or ""),
            window,
            listing.rate,
            store.fetch_approved_bookings(listing_id, day),
        )
    except EngineError as e:
        return engine_error_response(e)

    logger.info("booking quoted listing=%s date=%s total=%.2f", listing_id, day, priced.total_price)
    return success_response({**priced.model_dump(mode="json"), "rate": listing.rate})


def register_routes(app: "FunctionApp"):

    @app.route(route="listings/{listing_id}/availability", methods=["GET"])
    def listing_availability(req: func.HttpRequest) -> func.HttpResponse:
        try:
            return handle_availability(req)
        except Exception as e:
            logger.exception("listing availability failed")
            return error_response(f"Internal server error: {str(e)}", 500)

    @app.route(route="bookings/quote", methods=["POST"])
    def quote_booking(req: func.HttpRequest) -> func.HttpResponse:
        try:
            return handle_quote(req)
        except Exception as e:
            logger.exception("bookings/quote failed")
            return error_response(f"Internal server error: {str(e)}", 500)
