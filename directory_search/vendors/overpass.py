"""Client utilities for the OpenStreetMap Overpass API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from directory_search.core.config import DEFAULT_OVERPASS_URL

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

USER_AGENT = "AutismDirectorySearch/1.0 (+https://autism-directory.app/contact)"
DEFAULT_TIMEOUT = 8
QUERY_TIMEOUT_SECONDS = 25

THERAPISTS = "Therapists & Specialists"
DIAGNOSTIC_CENTERS = "Diagnostic Centers"
SUPPORT_GROUPS = "Support Groups"
EDUCATIONAL_SERVICES = "Educational Services"
RECREATIONAL_PROGRAMS = "Recreational Programs"
ADULT_SERVICES = "Adult Services"

CATEGORY_FILTERS: Dict[str, List[str]] = {
    THERAPISTS: [
        'nwr["healthcare"~"psychologist|therapy|counselling|speech_therapist|occupational_therapist"]',
        'nwr["amenity"="clinic"]["healthcare"~".*"]',
    ],
    DIAGNOSTIC_CENTERS: [
        'nwr["healthcare"~"clinic|diagnostic_centre|hospital"]',
        'nwr["amenity"="clinic"]',
    ],
    SUPPORT_GROUPS: [
        'nwr["social_facility"]["social_facility:for"~"autism|disability|special_needs", i]',
        'nwr["amenity"="community_centre"]',
    ],
    EDUCATIONAL_SERVICES: [
        'nwr["amenity"="school"]["special_school"="yes"]',
        'nwr["amenity"="school"]["school:for"~"special_needs|autism", i]',
        'nwr["amenity"="college"]["special_needs"="yes"]',
    ],
    RECREATIONAL_PROGRAMS: [
        'nwr["leisure"="sports_centre"]',
        'nwr["leisure"="playground"]["inclusive_playground"="yes"]',
        'nwr["leisure"="playground"]["access:disabled"="yes"]',
        'nwr["amenity"="community_centre"]',
    ],
    ADULT_SERVICES: [
        'nwr["social_facility"]["social_facility:for"~"adult|disability", i]',
        'nwr["healthcare"~"clinic|therapy"]',
    ],
}

# Keyword -> category, checked in order against free-text category labels.
_CATEGORY_KEYWORDS = (
    ("therap", THERAPISTS),
    ("diagnos", DIAGNOSTIC_CENTERS),
    ("evaluat", DIAGNOSTIC_CENTERS),
    ("medical", DIAGNOSTIC_CENTERS),
    ("support", SUPPORT_GROUPS),
    ("education", EDUCATIONAL_SERVICES),
    ("recreation", RECREATIONAL_PROGRAMS),
    ("adult", ADULT_SERVICES),
)


class OverpassError(RuntimeError):
    """Raised when the Overpass API fails or returns an unusable payload."""


def resolve_category(label: Optional[str]) -> Optional[str]:
    """Map a category label onto one of the geodata categories.

    No label (or "all") selects therapists; a label that names none of the
    categories resolves to None so callers can skip the geodata query.
    """
    lowered = (label or "").strip().lower()
    if not lowered or lowered == "all":
        return THERAPISTS
    for name in CATEGORY_FILTERS:
        if lowered == name.lower():
            return name
    for keyword, name in _CATEGORY_KEYWORDS:
        if keyword in lowered:
            return name
    return None


def build_query(lat: float, lon: float, radius_meters: float, category: str) -> str:
    filters = CATEGORY_FILTERS.get(category, CATEGORY_FILTERS[THERAPISTS])
    around = f"around:{int(radius_meters)},{lat},{lon}"
    selectors = "\n".join(f"  {selector}({around});" for selector in filters)
    return f"[out:json][timeout:{QUERY_TIMEOUT_SECONDS}];\n(\n{selectors}\n);\nout body;\n>;\nout skel qt;"


def fetch_elements(
    lat: float,
    lon: float,
    radius_meters: float,
    category: str,
    url: str = DEFAULT_OVERPASS_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Dict[str, Any]]:
    """Run a category query around a point and return the raw elements."""
    body = build_query(lat, lon, radius_meters, category)
    response = _SESSION.post(
        url,
        data=body.encode("utf-8"),
        headers={"Content-Type": "text/plain", "User-Agent": USER_AGENT},
        timeout=timeout,
    )
    response.raise_for_status()
    try:
        payload = response.json()
    except ValueError as exc:
        raise OverpassError("Overpass returned a non-JSON payload") from exc

    remark = payload.get("remark") if isinstance(payload, dict) else None
    if remark and "error" in remark.lower():
        logger.error("Overpass query failed: %s", remark)
        raise OverpassError(remark)

    elements = payload.get("elements") if isinstance(payload, dict) else None
    if not isinstance(elements, list):
        raise OverpassError("Overpass payload is missing the elements list")
    return elements
