"""Hybrid search: fan out to every source, merge, deduplicate and rank."""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import Executor
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from directory_search.core.analytics import AnalyticsSink, SearchEvent, submit_search_event
from directory_search.core.config import ConfigError
from directory_search.etl.dedupe import deduplicate
from directory_search.etl.filters import apply_source_filters
from directory_search.etl.ranking import rank
from directory_search.etl.transform import normalize_batch
from directory_search.jobs.dispatcher import fan_out
from directory_search.models import (
    DEFAULT_MAX_RESULTS,
    DEFAULT_RADIUS_METERS,
    CanonicalResult,
    Coordinates,
    LocationStatus,
    SearchQuery,
)
from directory_search.sources.base import SourceAdapter

logger = logging.getLogger(__name__)

SEARCH_STRATEGY = "hybrid"

_GEOLOCATION_MESSAGES = {
    LocationStatus.DENIED: "Location access was denied. Allow location sharing or search by city instead.",
    LocationStatus.UNSUPPORTED: "Geolocation is not supported by your browser.",
}


class GeolocationError(RuntimeError):
    """The caller tried to search near their position but no position is available."""

    def __init__(self, status: LocationStatus) -> None:
        super().__init__(_GEOLOCATION_MESSAGES.get(status, "Unable to get your location."))
        self.status = status

    @property
    def code(self) -> str:
        return f"geolocation_{self.status.value}"


class LocationNotFoundError(RuntimeError):
    """A free-text location could not be geocoded."""

    code = "location_not_found"

    def __init__(self, location_query: str) -> None:
        super().__init__(f"Could not find that location: {location_query}")
        self.location_query = location_query


# ---------- Request parsing ----------


def _parse_flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def _parse_location(raw: Any) -> Optional[Coordinates]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError("location must be an object with lat and lng")
    try:
        coordinates = Coordinates(lat=float(raw["lat"]), lng=float(raw["lng"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("location must contain numeric lat and lng") from exc
    if not coordinates.is_valid():
        raise ValueError("location lat/lng out of range")
    return coordinates


def _parse_positive(raw: Any, default, cast, name: str):
    if raw is None:
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"{name} must be numeric") from exc
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite")
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def _parse_location_status(raw: Any, location: Optional[Coordinates]) -> LocationStatus:
    if location is not None:
        return LocationStatus.PROVIDED
    if raw is None:
        return LocationStatus.NOT_PROVIDED
    try:
        status = LocationStatus(str(raw).strip().lower())
    except ValueError as exc:
        raise ValueError(f"locationStatus must be one of {[s.value for s in LocationStatus]}") from exc
    # A "provided" status without coordinates is treated as no location.
    return LocationStatus.NOT_PROVIDED if status is LocationStatus.PROVIDED else status


def parse_search_request(payload: Dict[str, Any]) -> SearchQuery:
    """Validate a JSON search body into a SearchQuery; raises ValueError on bad input."""
    query = payload.get("query")
    if query is not None and not isinstance(query, str):
        raise ValueError("query must be a string")

    location = _parse_location(payload.get("location"))

    min_rating = payload.get("minRating")
    if min_rating is not None:
        try:
            min_rating = float(min_rating)
        except (TypeError, ValueError) as exc:
            raise ValueError("minRating must be numeric") from exc
        if not 0 <= min_rating <= 5:
            raise ValueError("minRating must be between 0 and 5")

    category = payload.get("category")
    if category is not None:
        category = str(category).strip() or None
    session_id = payload.get("sessionId")

    location_query = payload.get("locationQuery")
    if location_query is not None and not isinstance(location_query, str):
        raise ValueError("locationQuery must be a string")

    return SearchQuery(
        query=(query or "").strip(),
        location=location,
        radius_meters=_parse_positive(payload.get("radius"), DEFAULT_RADIUS_METERS, float, "radius"),
        category=category,
        include_google=_parse_flag(payload.get("includeGoogle"), True),
        include_osm=_parse_flag(payload.get("includeOSM"), True),
        include_local=_parse_flag(payload.get("includeLocal"), True),
        max_results=_parse_positive(payload.get("maxResults"), DEFAULT_MAX_RESULTS, int, "maxResults"),
        min_rating=min_rating,
        session_id=str(session_id) if session_id else None,
        location_status=_parse_location_status(payload.get("locationStatus"), location),
        location_query=(location_query or "").strip() or None,
    )


# ---------- Pipeline ----------


@dataclass
class HybridSearchResponse:
    results: List[CanonicalResult]
    sources: Dict[str, bool]
    failed_sources: List[str] = field(default_factory=list)
    cache_hit: bool = False
    response_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "totalResults": len(self.results),
            "sources": self.sources,
            "failedSources": self.failed_sources,
            "searchStrategy": SEARCH_STRATEGY,
            "responseTimeMs": self.response_time_ms,
        }


class HybridSearchService:
    """Aggregation pipeline with its collaborators injected."""

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        executor: Executor,
        source_timeout: float,
        analytics: Optional[AnalyticsSink] = None,
        analytics_executor: Optional[Executor] = None,
        geocoder: Optional[Callable[[str], Optional[Coordinates]]] = None,
    ) -> None:
        self._adapters = list(adapters)
        self._executor = executor
        self._source_timeout = source_timeout
        self._analytics = analytics
        self._analytics_executor = analytics_executor or executor
        self._geocoder = geocoder

    def _resolve_location(self, query: SearchQuery) -> SearchQuery:
        """Geocode a free-text location when no coordinates were given."""
        if query.location is not None or not query.location_query:
            return query
        if self._geocoder is None:
            raise ConfigError("locationQuery needs a geocoder; none is configured")
        coordinates = self._geocoder(query.location_query)
        if coordinates is None:
            raise LocationNotFoundError(query.location_query)
        return replace(query, location=coordinates, location_status=LocationStatus.PROVIDED)

    def search(self, query: SearchQuery, user_agent: str = "") -> HybridSearchResponse:
        if query.location is None and not query.location_query and query.location_status in _GEOLOCATION_MESSAGES:
            raise GeolocationError(query.location_status)

        started = time.monotonic()
        query = self._resolve_location(query)
        outcomes = fan_out(query, self._adapters, self._executor, self._source_timeout)

        combined: List[CanonicalResult] = []
        failed: List[str] = []
        cache_hit = False
        for source, outcome in outcomes:
            if not outcome.ok:
                failed.append(source)
                continue
            try:
                normalized = normalize_batch(outcome.records, source)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Discarding malformed records from %s: %s", source, exc)
                failed.append(source)
                continue
            kept = apply_source_filters(normalized, source, query)
            logger.info("Source %s contributed %d of %d results", source, len(kept), len(normalized))
            combined.extend(kept)
            cache_hit = cache_hit or outcome.cache_hit

        ranked = rank(deduplicate(combined), query.query, query.location, query.max_results)
        response_time_ms = int((time.monotonic() - started) * 1000)

        response = HybridSearchResponse(
            results=ranked,
            sources={
                "google": query.include_google,
                "osm": query.include_osm,
                "local": query.include_local,
            },
            failed_sources=failed,
            cache_hit=cache_hit,
            response_time_ms=response_time_ms,
        )
        self._log_search(query, response, user_agent)
        return response

    def _log_search(self, query: SearchQuery, response: HybridSearchResponse, user_agent: str) -> None:
        if self._analytics is None:
            return
        event = SearchEvent(
            search_query=query.query,
            search_type="hybrid_search",
            location_lat=query.location.lat if query.location else None,
            location_lng=query.location.lng if query.location else None,
            category=query.category,
            cache_hit=response.cache_hit,
            response_time_ms=response.response_time_ms,
            result_count=len(response.results),
            api_cost_estimate=0.0,
            user_agent=user_agent,
        )
        submit_search_event(self._analytics_executor, self._analytics, event)
