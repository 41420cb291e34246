"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_OK_STATUSES = {"OK", "ZERO_RESULTS"}

# Place types that bias searches toward providers relevant to the directory.
AUTISM_PLACE_TYPES = "health|doctor|hospital|physiotherapist|establishment"
DEFAULT_TIMEOUT = 10


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


def _location_param(location: Optional[Dict[str, float]]) -> Optional[str]:
    if not location:
        return None
    return f"{location['lat']},{location['lng']}"


def _get(endpoint: str, params: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    response = _SESSION.get(f"{_BASE_URL}/{endpoint}/json", params=params, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in _OK_STATUSES:
        logger.error("%s failed: status=%s, error_message=%s", endpoint, status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload


def text_search(
    query: str,
    api_key: str,
    location: Optional[Dict[str, float]] = None,
    radius: Optional[float] = None,
    pagetoken: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    params = {"query": query, "key": api_key, "type": AUTISM_PLACE_TYPES}
    if location:
        params["location"] = _location_param(location)
        if radius:
            params["radius"] = str(int(radius))
    if pagetoken:
        params["pagetoken"] = pagetoken
    return _get("textsearch", params, timeout)


def nearby_search(
    keyword: str,
    api_key: str,
    location: Dict[str, float],
    radius: float,
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    params = {
        "keyword": keyword,
        "key": api_key,
        "location": _location_param(location),
        "radius": str(int(radius)),
        "type": AUTISM_PLACE_TYPES,
    }
    return _get("nearbysearch", params, timeout)


def autocomplete(
    text: str,
    api_key: str,
    location: Optional[Dict[str, float]] = None,
    radius: Optional[float] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Dict[str, Any]]:
    params = {"input": text, "key": api_key}
    if location:
        params["location"] = _location_param(location)
        if radius:
            params["radius"] = str(int(radius))
    return _get("autocomplete", params, timeout).get("predictions", [])


def place_details(place_id: str, api_key: str, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    fields = (
        "place_id,name,formatted_address,formatted_phone_number,geometry,website,"
        "rating,user_ratings_total,types,opening_hours,business_status"
    )
    params = {"place_id": place_id, "key": api_key, "fields": fields}
    return _get("details", params, timeout).get("result", {})
