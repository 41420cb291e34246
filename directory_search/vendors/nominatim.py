"""Client utilities for the OpenStreetMap Nominatim geocoder."""

import logging
from typing import Optional

import requests

from directory_search.core.config import DEFAULT_NOMINATIM_URL
from directory_search.models import Coordinates
from directory_search.vendors.overpass import USER_AGENT

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

DEFAULT_TIMEOUT = 8


class GeocodingError(RuntimeError):
    """Raised when Nominatim returns an unusable payload."""


def geocode(
    text: str,
    url: str = DEFAULT_NOMINATIM_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[Coordinates]:
    """Resolve a free-text place name to coordinates, or None when nothing matches."""
    response = _SESSION.get(
        url,
        params={"q": text, "format": "json", "limit": "1", "addressdetails": "0"},
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        timeout=timeout,
    )
    response.raise_for_status()
    try:
        payload = response.json()
    except ValueError as exc:
        raise GeocodingError("Nominatim returned a non-JSON payload") from exc
    if not isinstance(payload, list):
        raise GeocodingError("Nominatim payload is not a list")
    if not payload:
        logger.info("No geocoding match for %r", text)
        return None

    match = payload[0]
    try:
        coordinates = Coordinates(lat=float(match["lat"]), lng=float(match["lon"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise GeocodingError("Nominatim match is missing numeric lat/lon") from exc
    if not coordinates.is_valid():
        raise GeocodingError(f"Nominatim returned out-of-range coordinates for {text!r}")
    logger.info("Geocoded %r to %s,%s (%s)", text, coordinates.lat, coordinates.lng, match.get("display_name"))
    return coordinates
