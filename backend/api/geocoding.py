import logging
import requests
import azure.functions as func

from typing          import TYPE_CHECKING, Any, Dict, List, Optional
from shared.config   import get_geocoder_timeout, get_geocoder_url, get_user_agent
from shared.errors   import EngineError
from shared.geo      import validate_coordinate
from shared.models   import Address, ResolvedPlace
from shared.search   import classify_specificity
from utils.response  import engine_error_response, error_response, success_response

if TYPE_CHECKING:
    from azure.functions import FunctionApp

logger = logging.getLogger(__name__)


def _get_json(path: str, params: Dict[str, Any]) -> Optional[Any]:
    url     = f"{get_geocoder_url()}/{path}"
    headers = {
        "User-Agent": get_user_agent()
    }

    try:
        response = requests.get(url, params=params, headers=headers, timeout=get_geocoder_timeout())
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Geocoder request to %s failed: %s", path, e)
        return None


def _to_place(item: Dict[str, Any]) -> Optional[ResolvedPlace]:
    try:
        coordinate = validate_coordinate(item["lat"], item["lon"])
    except (KeyError, EngineError) as e:
        logger.warning("Geocoder returned an unusable coordinate: %s", e)
        return None

    address = Address(**(item.get("address") or {}))
    return ResolvedPlace(
        coordinate   = coordinate,
        specificity  = classify_specificity(address),
        address      = address,
        display_name = item.get("display_name", ""),
    )


def coords_to_address(latitude: float, longitude: float) -> Optional[ResolvedPlace]:
    params = {
        "lat"    : latitude,
        "lon"    : longitude,
        "format" : "json",
    }

    data = _get_json("reverse", params)
    if not data or "error" in data:
        return None

    return _to_place(data)


def address_to_places(query: str, limit: int = 5) -> List[ResolvedPlace]:
    params = {
        "q"      : query,
        "format" : "json",
        "limit"  : limit,
        "addressdetails": 1,
    }

    data = _get_json("search", params)
    if not data:
        return []

    places = []
    for item in data:
        place = _to_place(item)
        if place:
            places.append(place)
    return places


def resolve_place(query: str) -> Optional[ResolvedPlace]:
    query = (query or "").strip()
    if not query:
        return None

    places = address_to_places(query, limit=1)
    return places[0] if places else None


def handle_reverse_geocode(req: func.HttpRequest) -> func.HttpResponse:
    lat = req.params.get("lat")
    lon = req.params.get("lon")

    if not lat or not lon:
        return error_response("Missing required parameters: lat and lon", 400)

    try:
        coordinate = validate_coordinate(lat, lon)
    except EngineError as e:
        return engine_error_response(e)

    place = coords_to_address(coordinate.latitude, coordinate.longitude)

    if not place:
        return error_response("Could not find address for coordinates", 404)

    return success_response(place.model_dump(mode="json"))


def handle_forward_geocode(req: func.HttpRequest) -> func.HttpResponse:
    query = req.params.get("q")

    if not query:
        return error_response("Missing required parameter: q", 400)

    places = address_to_places(query)

    if not places:
        return error_response("No results found for query", 404)

    return success_response([p.model_dump(mode="json") for p in places])


def register_routes(app: "FunctionApp"):

    @app.route(route="geocoding/reverse", methods=["GET"])
    def reverse_geocode(req: func.HttpRequest) -> func.HttpResponse:
        try:
            return handle_reverse_geocode(req)
        except Exception as e:
            logger.exception("geocoding/reverse failed")
            return error_response(f"Internal server error: {str(e)}", 500)

    @app.route(route="geocoding/search", methods=["GET"])
    def forward_geocode(req: func.HttpRequest) -> func.HttpResponse:
        try:
            return handle_forward_geocode(req)
        except Exception as e:
            logger.exception("geocoding/search failed")
            return error_response(f"Internal server error: {str(e)}", 500)
