"""Cache-first single-source search against the Google Places API."""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from directory_search.core.analytics import (
    PLACES_PROVIDER,
    AnalyticsSink,
    SearchEvent,
    estimate_cost,
    submit_api_usage,
    submit_search_event,
)
from directory_search.core.cache import CacheStore, build_cache_key
from directory_search.core.config import ConfigError, Settings
from directory_search.etl.transform import normalize_batch
from directory_search.models import (
    SOURCE_REMOTE_PLACES,
    Coordinates,
    PlacePrediction,
    RawSourceRecord,
    RemotePlaceRecord,
)
from directory_search.sources.remote_places import store_places_results
from directory_search.vendors import google_places

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("text_search", "nearby_search", "place_details", "autocomplete")
DEFAULT_RADIUS = 50000


@dataclass(frozen=True)
class PlacesSearchRequest:
    query: str
    search_type: str = "text_search"
    location: Optional[Dict[str, float]] = None
    radius: float = DEFAULT_RADIUS
    category: Optional[str] = None
    use_cache: bool = True


def parse_places_request(payload: Dict[str, Any]) -> PlacesSearchRequest:
    query = str(payload.get("query") or "").strip()
    if not query:
        raise ValueError("query is required")

    search_type = payload.get("type") or "text_search"
    if search_type not in SEARCH_TYPES:
        raise ValueError(f"type must be one of {', '.join(SEARCH_TYPES)}")

    location = None
    raw_location = payload.get("location")
    if raw_location is not None:
        try:
            coordinates = Coordinates(lat=float(raw_location["lat"]), lng=float(raw_location["lng"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError("location must contain numeric lat and lng") from exc
        if not coordinates.is_valid():
            raise ValueError("location lat/lng out of range")
        location = coordinates.to_dict()
    if search_type == "nearby_search" and location is None:
        raise ValueError("nearby_search requires a location")

    radius_raw = payload.get("radius", DEFAULT_RADIUS)
    try:
        radius = float(radius_raw)
    except (TypeError, ValueError) as exc:
        raise ValueError("radius must be numeric") from exc
    if not math.isfinite(radius):
        raise ValueError("radius must be finite")
    if radius <= 0:
        raise ValueError("radius must be positive")

    category = payload.get("category")
    use_cache = payload.get("useCache", True)
    return PlacesSearchRequest(
        query=query,
        search_type=search_type,
        location=location,
        radius=radius,
        category=str(category) if category else None,
        use_cache=use_cache if isinstance(use_cache, bool) else str(use_cache).lower() in {"1", "true", "yes"},
    )


def _to_records(search_type: str, raw: Any) -> List[RawSourceRecord]:
    if not isinstance(raw, list):
        raise ValueError(f"places payload is {type(raw).__name__}, expected list")
    if search_type == "autocomplete":
        return [PlacePrediction(payload=item) for item in raw if isinstance(item, dict)]
    return [RemotePlaceRecord(payload=item) for item in raw if isinstance(item, dict)]


class PlacesSearchService:
    def __init__(
        self,
        cache: CacheStore,
        settings: Settings,
        executor: Optional[Executor] = None,
        analytics: Optional[AnalyticsSink] = None,
    ) -> None:
        self._cache = cache
        self._settings = settings
        self._executor = executor
        self._analytics = analytics

    def _call_api(self, request: PlacesSearchRequest) -> List[Dict[str, Any]]:
        api_key = self._settings.google_api_key
        timeout = self._settings.source_timeout_seconds
        if request.search_type == "text_search":
            payload = google_places.text_search(
                request.query, api_key, location=request.location, radius=request.radius, timeout=timeout
            )
            return payload.get("results", [])
        if request.search_type == "nearby_search":
            payload = google_places.nearby_search(
                request.query, api_key, location=request.location, radius=request.radius, timeout=timeout
            )
            return payload.get("results", [])
        if request.search_type == "autocomplete":
            return google_places.autocomplete(
                request.query, api_key, location=request.location, radius=request.radius, timeout=timeout
            )
        details = google_places.place_details(request.query, api_key, timeout=timeout)
        return [details] if details else []

    def search(self, request: PlacesSearchRequest, user_agent: str = "") -> Dict[str, Any]:
        started = time.monotonic()
        key = build_cache_key(request.search_type, request.query, request.location, request.radius, request.category)

        raw = None
        cache_hit = False
        if request.use_cache:
            entry = self._cache.get(key)
            if entry is not None:
                logger.info("Cache hit for query: %s", request.query)
                raw = entry.value
                cache_hit = True

        cost = estimate_cost(request.search_type, self._settings.cost_estimates)
        if not cache_hit:
            if not self._settings.google_api_key:
                raise ConfigError("GOOGLE_PLACES_API_KEY must be set to query Google Places")
            logger.info("Cache miss, fetching %s from Google Places", request.search_type)
            raw = self._call_api(request)
            store_places_results(
                self._cache,
                key,
                raw,
                search_type=request.search_type,
                query_params={
                    "query": request.query,
                    "location": request.location,
                    "radius": request.radius,
                    "type": request.search_type,
                    "category": request.category,
                },
                location=request.location,
                radius=request.radius,
            )
            if self._executor is not None and self._analytics is not None:
                submit_api_usage(self._executor, self._analytics, PLACES_PROVIDER, request.search_type, cost)

        results = normalize_batch(_to_records(request.search_type, raw), SOURCE_REMOTE_PLACES)
        response_time_ms = int((time.monotonic() - started) * 1000)

        if self._executor is not None and self._analytics is not None:
            event = SearchEvent(
                search_query=request.query,
                search_type=request.search_type,
                location_lat=request.location["lat"] if request.location else None,
                location_lng=request.location["lng"] if request.location else None,
                category=request.category,
                cache_hit=cache_hit,
                response_time_ms=response_time_ms,
                result_count=len(results),
                api_cost_estimate=0.0 if cache_hit else cost,
                user_agent=user_agent,
            )
            submit_search_event(self._executor, self._analytics, event)

        return {
            "results": [result.to_dict() for result in results],
            "totalResults": len(results),
            "cacheHit": cache_hit,
            "responseTime": response_time_ms,
            "source": "google_places",
        }
