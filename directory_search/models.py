"""Core data models shared by the hybrid search pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

DEFAULT_RADIUS_METERS = 50000
DEFAULT_MAX_RESULTS = 50

SOURCE_REMOTE_PLACES = "remote-places"
SOURCE_PUBLIC_GEODATA = "public-geodata"
SOURCE_LOCAL_STATIC = "local-static"


class LocationStatus(str, Enum):
    """Whether the caller shared a location, and if not, why."""

    PROVIDED = "provided"
    NOT_PROVIDED = "not_provided"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"


class ResultKind(str, Enum):
    PROVIDER = "provider"
    ORGANIZATION = "organization"
    RESOURCE = "resource"


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def is_valid(self) -> bool:
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class SearchQuery:
    """A single search request after validation."""

    query: str = ""
    location: Optional[Coordinates] = None
    radius_meters: float = DEFAULT_RADIUS_METERS
    category: Optional[str] = None
    include_google: bool = True
    include_osm: bool = True
    include_local: bool = True
    max_results: int = DEFAULT_MAX_RESULTS
    min_rating: Optional[float] = None
    session_id: Optional[str] = None
    location_status: LocationStatus = LocationStatus.NOT_PROVIDED
    # Free-text place name geocoded into `location` when no coordinates are given.
    location_query: Optional[str] = None


# ---------- Raw source records ----------
# Each source adapter yields exactly one of these variants; normalization
# dispatches on the variant type.


@dataclass(slots=True)
class RemotePlaceRecord:
    """A place record as returned (or cached) from the places API."""

    payload: Dict[str, Any]


@dataclass(slots=True)
class PlacePrediction:
    """An autocomplete prediction from the places API."""

    payload: Dict[str, Any]


@dataclass(slots=True)
class GeodataElement:
    """A tagged map-data element plus the context needed to place it."""

    element: Dict[str, Any]
    category: str
    nodes_by_id: Dict[int, Dict[str, Any]] = field(default_factory=dict, repr=False)


@dataclass(slots=True)
class CatalogEntry:
    """A record from the in-process static catalog."""

    kind: ResultKind
    payload: Dict[str, Any]


RawSourceRecord = Union[RemotePlaceRecord, PlacePrediction, GeodataElement, CatalogEntry]


@dataclass(slots=True)
class CanonicalResult:
    """Unified record every source is normalized into before ranking."""

    id: str
    name: str
    source: str
    description: str = ""
    category: str = ""
    location_label: str = ""
    coordinates: Optional[Coordinates] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    kind: ResultKind = ResultKind.PROVIDER
    featured: bool = False
    verified: bool = False
    detail_url: Optional[str] = None
    open_now: Optional[bool] = None
    attribution: Optional[str] = None
    relevance_score: Optional[float] = None
    # Extra text the local catalog matches queries against (services, specialties).
    keywords: List[str] = field(default_factory=list, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase wire format of the search API."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "location": self.location_label,
            "website": self.website or "",
            "phone": self.phone or "",
            "rating": self.rating,
            "reviewCount": self.review_count,
            "type": self.kind.value,
            "featured": self.featured,
            "verified": self.verified,
            "source": self.source,
        }
        if self.coordinates is not None:
            data["coordinates"] = self.coordinates.to_dict()
        if self.relevance_score is not None:
            data["relevanceScore"] = self.relevance_score
        if self.detail_url:
            data["detailUrl"] = self.detail_url
        if self.open_now is not None:
            data["openNow"] = self.open_now
        if self.attribution:
            data["attribution"] = self.attribution
        return data


@dataclass(slots=True)
class SourceOutcome:
    """Result of one source adapter call: records on success, an error otherwise."""

    records: List[RawSourceRecord] = field(default_factory=list)
    error: Optional[str] = None
    cache_hit: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None
