"""
Address <-> coordinate lookups through the Google Geocoding API.

Raises ValueError with a user-friendly message on any failure, so
callers (the CLI, imports) can report it without a traceback.
"""

from typing import Any, Dict, Optional

import requests

from .config import get_settings
from .geo import validate_coordinates
from .logger import get_logger
from .models import Location
from .retry import (
    CircuitBreaker,
    CircuitOpenError,
    RetryError,
    RetryableStatusError,
    exponential_backoff,
    should_retry_http_status,
)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
REQUEST_TIMEOUT = 10

# API statuses worth another attempt
TRANSIENT_STATUSES = {"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"}


class TransientGeocodeError(Exception):
    """The API answered, but asked us to come back later."""


_breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60, expected_exception=RetryError)


@exponential_backoff(
    max_retries=3,
    base_delay=0.5,
    exceptions=(
        requests.exceptions.Timeout,
        requests.exceptions.ConnectionError,
        RetryableStatusError,
        TransientGeocodeError,
    ),
)
def _fetch_with_retry(params: Dict[str, str]) -> Dict[str, Any]:
    """GET the geocoding endpoint, retrying transient failures."""
    resp = requests.get(GEOCODE_URL, params=params, timeout=REQUEST_TIMEOUT)
    if should_retry_http_status(resp.status_code):
        raise RetryableStatusError(resp.status_code, GEOCODE_URL)
    resp.raise_for_status()
    data = resp.json()
    if data.get("status") in TRANSIENT_STATUSES:
        raise TransientGeocodeError(data.get("status"))
    return data


def _resolve_api_key(api_key: Optional[str]) -> str:
    key = api_key or get_settings().google_maps_api_key
    if not key:
        raise ValueError(
            "Google Maps API key is not configured. Set GOOGLE_MAPS_API_KEY or pass --api-key."
        )
    return key


def _request(params: Dict[str, str]) -> Dict[str, Any]:
    """Call the API with retries and circuit breaking; errors become ValueError."""
    logger = get_logger()
    logger.record_geocode_attempt()
    logger.record_api_call()
    try:
        data = _breaker.call(_fetch_with_retry, params)
    except CircuitOpenError as e:
        logger.record_geocode_failure("CircuitOpen")
        logger.warning("Geocoding circuit open", error=str(e))
        raise ValueError("Geocoding service is temporarily unavailable. Try again later.")
    except RetryError as e:
        cause = type(e.__cause__).__name__ if e.__cause__ else "RetryError"
        logger.record_geocode_failure(cause)
        logger.error("Geocoding failed after retries", error=str(e))
        raise ValueError("Geocoding request failed repeatedly. Try again later.")
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.record_geocode_failure(f"HTTPError_{status}")
        logger.error("Geocoding request failed", status=status)
        raise ValueError(f"Geocoding request failed ({status})")
    except requests.exceptions.RequestException as e:
        logger.record_geocode_failure("RequestException")
        logger.error("Geocoding request error", error=str(e))
        raise ValueError(f"Geocoding request error: {e}")

    status = data.get("status")
    if status in ("OK", "ZERO_RESULTS"):
        return data

    logger.record_geocode_failure(str(status))
    message = data.get("error_message") or status
    logger.error("Geocoding API error", status=status, message=message)
    raise ValueError(f"Geocoding API error: {message}")


def _component(result: Dict[str, Any], kind: str, short: bool = False) -> Optional[str]:
    for comp in result.get("address_components", []):
        if kind in comp.get("types", []):
            return comp.get("short_name" if short else "long_name")
    return None


def geocode_address(address: str, api_key: Optional[str] = None) -> Location:
    """
    Resolve a free-form address to a Location.

    Raises:
        ValueError: On a blank address, missing API key, no match or API failure
    """
    if not address or not address.strip():
        raise ValueError("Address must not be empty")
    key = _resolve_api_key(api_key)
    logger = get_logger()

    data = _request({"address": address.strip(), "key": key})
    results = data.get("results") or []
    if not results:
        logger.record_geocode_failure("ZERO_RESULTS")
        logger.warning("No geocoding results", address=address)
        raise ValueError(f"No location found for address: {address}")

    first = results[0]
    point = first["geometry"]["location"]
    location = Location(
        lat=float(point["lat"]),
        lng=float(point["lng"]),
        city=_component(first, "locality"),
        state=_component(first, "administrative_area_level_1", short=True),
        zip_code=_component(first, "postal_code"),
    )
    logger.record_geocode_success()
    logger.debug("Geocoded address", address=address, lat=location.lat, lng=location.lng)
    return location


def coordinates_label(lat: float, lng: float) -> str:
    return f"Lat: {lat:.6f}, Lng: {lng:.6f}"


def reverse_geocode(lat: float, lng: float, api_key: Optional[str] = None) -> str:
    """Formatted address for a point, or a "Lat: ..., Lng: ..." label when none is known."""
    validate_coordinates(lat, lng)
    key = _resolve_api_key(api_key)

    data = _request({"latlng": f"{lat},{lng}", "key": key})
    results = data.get("results") or []
    logger = get_logger()
    if not results or not results[0].get("formatted_address"):
        logger.record_geocode_failure("ZERO_RESULTS")
        return coordinates_label(lat, lng)
    logger.record_geocode_success()
    return results[0]["formatted_address"]


def reset_circuit() -> None:
    _breaker.reset()
