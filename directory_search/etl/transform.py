"""Utilities for transforming raw source records into canonical search results."""

import hashlib
import logging
from typing import Any, Dict, Iterable, List, Optional

from directory_search.models import (
    CanonicalResult,
    CatalogEntry,
    Coordinates,
    GeodataElement,
    PlacePrediction,
    RawSourceRecord,
    RemotePlaceRecord,
    ResultKind,
)

logger = logging.getLogger(__name__)

DEFAULT_PLACES_CATEGORY = "Healthcare Provider"
GEODATA_ATTRIBUTION = "OpenStreetMap (Overpass)"
OSM_BASE_URL = "https://www.openstreetmap.org"

# Places API type -> directory category. The first type of a record found here wins.
PLACE_TYPE_CATEGORIES: Dict[str, str] = {
    "doctor": "Medical Care",
    "hospital": "Medical Care",
    "physiotherapist": "Therapy Services",
    "psychologist": "Mental Health",
    "health": "Medical Care",
    "establishment": "Healthcare Provider",
    "school": "Education",
    "university": "Education",
    "library": "Education",
    "gym": "Recreation",
    "park": "Recreation",
}

_ORGANIZATION_SCOPE_LABELS = {"national": "Nationwide", "local": "Regional", "online": "Online"}


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_coordinates(lat: Any, lng: Any) -> Optional[Coordinates]:
    lat_val = _safe_float(lat)
    lng_val = _safe_float(lng)
    if lat_val is None or lng_val is None:
        return None
    coordinates = Coordinates(lat=lat_val, lng=lng_val)
    if not coordinates.is_valid():
        logger.debug("Discarding out-of-range coordinates %s,%s", lat, lng)
        return None
    return coordinates


def _parse_rating(value: Any) -> Optional[float]:
    rating = _safe_float(value)
    if rating is None or not 0.0 <= rating <= 5.0:
        return None
    return rating


def _parse_review_count(value: Any) -> Optional[int]:
    count = _safe_int(value)
    if count is None or count < 0:
        return None
    return count


def map_types_to_category(types: Iterable[str]) -> str:
    for type_name in types or []:
        category = PLACE_TYPE_CATEGORIES.get(type_name)
        if category:
            return category
    return DEFAULT_PLACES_CATEGORY


def _fallback_id(*parts: Optional[str]) -> str:
    digest = hashlib.sha1("|".join(p or "" for p in parts).encode("utf-8")).hexdigest()
    return digest[:16]


def normalize_remote_place(payload: Dict[str, Any]) -> Optional[CanonicalResult]:
    name = _strip_or_none(payload.get("name"))
    if not name:
        return None

    types = [t for t in payload.get("types") or [] if isinstance(t, str)]
    address = _strip_or_none(payload.get("formatted_address")) or _strip_or_none(payload.get("vicinity")) or ""
    geometry = (payload.get("geometry") or {}).get("location") or {}
    type_label = ", ".join(types) or DEFAULT_PLACES_CATEGORY

    return CanonicalResult(
        id=_strip_or_none(payload.get("place_id")) or _fallback_id(name, address),
        name=name,
        source="",
        description=f"{type_label} in {address}",
        category=map_types_to_category(types),
        location_label=address,
        coordinates=parse_coordinates(geometry.get("lat"), geometry.get("lng")),
        website=_strip_or_none(payload.get("website")),
        phone=_strip_or_none(payload.get("formatted_phone_number")),
        rating=_parse_rating(payload.get("rating")),
        review_count=_parse_review_count(payload.get("user_ratings_total")),
        kind=ResultKind.PROVIDER,
        featured=False,
        verified=True,
        open_now=(payload.get("opening_hours") or {}).get("open_now"),
    )


def normalize_prediction(payload: Dict[str, Any]) -> Optional[CanonicalResult]:
    description = _strip_or_none(payload.get("description")) or ""
    structured = payload.get("structured_formatting") or {}
    name = _strip_or_none(structured.get("main_text")) or _strip_or_none(description.split(",")[0])
    if not name:
        return None

    types = [t for t in payload.get("types") or [] if isinstance(t, str)]
    return CanonicalResult(
        id=_strip_or_none(payload.get("place_id")) or _fallback_id(name, description),
        name=name,
        source="",
        description=description,
        category=map_types_to_category(types),
        location_label=description,
        kind=ResultKind.PROVIDER,
        verified=True,
    )


def _element_coordinates(record: GeodataElement) -> Optional[Coordinates]:
    element = record.element
    if element.get("lat") is not None and element.get("lon") is not None:
        return parse_coordinates(element.get("lat"), element.get("lon"))
    center = element.get("center") or {}
    if center:
        return parse_coordinates(center.get("lat"), center.get("lon"))
    node_ids = element.get("nodes") or []
    node = record.nodes_by_id.get(node_ids[0]) if node_ids else None
    if node:
        return parse_coordinates(node.get("lat"), node.get("lon"))
    return None


def normalize_geodata(record: GeodataElement) -> Optional[CanonicalResult]:
    element = record.element
    tags = element.get("tags") or {}
    name = _strip_or_none(tags.get("name")) or _strip_or_none(tags.get("operator"))
    if not name:
        return None

    address = " ".join(
        part
        for part in (
            _strip_or_none(tags.get("addr:housenumber")),
            _strip_or_none(tags.get("addr:street")),
            _strip_or_none(tags.get("addr:city")),
            _strip_or_none(tags.get("addr:state")),
        )
        if part
    )
    element_type = element.get("type")
    element_id = element.get("id")

    return CanonicalResult(
        id=f"{element_type}-{element_id}",
        name=name,
        source="",
        description=f"{record.category} in {address}" if address else record.category,
        category=record.category,
        location_label=address,
        coordinates=_element_coordinates(record),
        website=_strip_or_none(tags.get("website")) or _strip_or_none(tags.get("contact:website")),
        phone=_strip_or_none(tags.get("phone")) or _strip_or_none(tags.get("contact:phone")),
        kind=ResultKind.PROVIDER,
        featured=False,
        verified=True,
        detail_url=f"{OSM_BASE_URL}/{element_type}/{element_id}",
        attribution=GEODATA_ATTRIBUTION,
    )


def normalize_catalog(record: CatalogEntry) -> Optional[CanonicalResult]:
    payload = record.payload
    name = _strip_or_none(payload.get("title") if record.kind is ResultKind.RESOURCE else payload.get("name"))
    if not name:
        return None

    result = CanonicalResult(
        id=str(payload.get("id") or _fallback_id(name)),
        name=name,
        source="",
        description=payload.get("description") or "",
        category=payload.get("category") or "",
        website=_strip_or_none(payload.get("website")),
        phone=_strip_or_none(payload.get("phone")),
        kind=record.kind,
        featured=bool(payload.get("featured")),
        verified=True,
        keywords=list(payload.get("services") or []),
    )

    if record.kind is ResultKind.PROVIDER:
        location = payload.get("location") or {}
        contact = payload.get("contact") or {}
        coordinates = location.get("coordinates") or {}
        result.location_label = f"{location.get('city', '')}, {location.get('state', '')}".strip(", ")
        result.coordinates = parse_coordinates(coordinates.get("lat"), coordinates.get("lng"))
        result.website = _strip_or_none(contact.get("website"))
        result.phone = _strip_or_none(contact.get("phone"))
        result.rating = _parse_rating(payload.get("rating"))
        result.review_count = _parse_review_count(payload.get("reviewCount"))
        result.verified = bool(payload.get("verified"))
        result.keywords.extend(payload.get("specialties") or [])
    elif record.kind is ResultKind.ORGANIZATION:
        result.location_label = _ORGANIZATION_SCOPE_LABELS.get(payload.get("type"), "Online")
    else:
        result.location_label = "Online"
        result.keywords = [payload.get("type")] if payload.get("type") else []

    return result


def normalize(record: RawSourceRecord) -> Optional[CanonicalResult]:
    """Map one raw record to a canonical result, or None if it lacks a name."""
    if isinstance(record, RemotePlaceRecord):
        return normalize_remote_place(record.payload)
    if isinstance(record, PlacePrediction):
        return normalize_prediction(record.payload)
    if isinstance(record, GeodataElement):
        return normalize_geodata(record)
    if isinstance(record, CatalogEntry):
        return normalize_catalog(record)
    raise TypeError(f"Unsupported raw record type: {type(record).__name__}")


def normalize_batch(records: Iterable[RawSourceRecord], source: str) -> List[CanonicalResult]:
    """Normalize a source's records, qualifying ids with the source name.

    Records without a name and repeated ids are dropped with a debug note.
    """
    results: List[CanonicalResult] = []
    seen_ids = set()
    for record in records:
        result = normalize(record)
        if result is None:
            logger.debug("Dropping %s record without a name: %s", source, record)
            continue
        result.source = source
        result.id = f"{source}:{result.id}"
        if result.id in seen_ids:
            logger.debug("Dropping repeated %s record %s", source, result.id)
            continue
        seen_ids.add(result.id)
        results.append(result)
    return results
