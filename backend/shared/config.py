import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS_KM  = 30.0
DEFAULT_NEARBY_RADIUS_KM  = 10.0
DEFAULT_GEOCODER_URL      = "https://nominatim.openstreetmap.org"
DEFAULT_GEOCODER_TIMEOUT  = 10.0
DEFAULT_USER_AGENT        = "DriveBay/1.0"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, not a number; using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r, must be positive; using %s", name, raw, default)
        return default
    return value


def get_connection_string() -> str:
    return os.environ.get("AzureWebJobsStorage", "")


def get_search_radius_km() -> float:
    return _float_env("DRIVEBAY_SEARCH_RADIUS_KM", DEFAULT_SEARCH_RADIUS_KM)


def get_nearby_radius_km() -> float:
    return _float_env("DRIVEBAY_NEARBY_RADIUS_KM", DEFAULT_NEARBY_RADIUS_KM)


def get_geocoder_url() -> str:
    return os.environ.get("DRIVEBAY_GEOCODER_URL", DEFAULT_GEOCODER_URL).rstrip("/")


def get_geocoder_timeout() -> float:
    return _float_env("DRIVEBAY_GEOCODER_TIMEOUT", DEFAULT_GEOCODER_TIMEOUT)


def get_user_agent() -> str:
    return os.environ.get("DRIVEBAY_USER_AGENT", DEFAULT_USER_AGENT)
