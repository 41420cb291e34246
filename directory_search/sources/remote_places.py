"""Adapter over cached and live Google Places search results."""

import logging
from concurrent.futures import Executor
from typing import Any, Dict, List, Optional

from directory_search.core.analytics import PLACES_PROVIDER, AnalyticsSink, estimate_cost, submit_api_usage
from directory_search.core.cache import CacheStore, build_cache_key, ttl_for
from directory_search.core.config import Settings
from directory_search.models import SOURCE_REMOTE_PLACES, RemotePlaceRecord, SearchQuery, SourceOutcome
from directory_search.vendors import google_places

logger = logging.getLogger(__name__)

NEARBY_CACHE_SCAN_LIMIT = 10


def store_places_results(
    cache: CacheStore,
    key: str,
    results: Any,
    *,
    search_type: str,
    query_params: Dict[str, Any],
    location: Optional[Dict[str, float]],
    radius: Optional[float],
) -> None:
    """Write a places API response to the cache; failures are logged, not raised."""
    try:
        cache.put(
            key,
            results,
            ttl_for(search_type),
            search_type=search_type,
            query_params=query_params,
            source="google_places",
            location_lat=location["lat"] if location else None,
            location_lng=location["lng"] if location else None,
            radius_meters=radius,
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to cache %s results for key %s: %s", search_type, key, exc)


def _as_records(value: Any) -> List[RemotePlaceRecord]:
    if not isinstance(value, list):
        raise ValueError(f"cached places payload is {type(value).__name__}, expected list")
    return [RemotePlaceRecord(payload=item) for item in value if isinstance(item, dict)]


class RemotePlacesSource:
    """Cache lookup first; live text search on a miss; nearby cached results otherwise."""

    name = SOURCE_REMOTE_PLACES
    search_type = "text_search"

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

    def enabled(self, query: SearchQuery) -> bool:
        return query.include_google

    def _live_fetch_allowed(self, query: SearchQuery) -> bool:
        if not self._settings.places_live_fetch or not query.query.strip():
            return False
        if not self._settings.google_api_key:
            logger.warning("GOOGLE_PLACES_API_KEY missing; skipping live places search for %r", query.query)
            return False
        return True

    def fetch(self, query: SearchQuery) -> SourceOutcome:
        location = query.location.to_dict() if query.location else None
        key = build_cache_key(self.search_type, query.query, location, query.radius_meters, query.category)

        entry = self._cache.get(key)
        if entry is not None:
            logger.info("Cache hit for query=%r", query.query)
            return SourceOutcome(records=_as_records(entry.value), cache_hit=True)

        if self._live_fetch_allowed(query):
            logger.info("Cache miss, fetching from Google Places for query=%r", query.query)
            payload = google_places.text_search(
                query=query.query,
                api_key=self._settings.google_api_key,
                location=location,
                radius=query.radius_meters,
                timeout=self._settings.source_timeout_seconds,
            )
            results = payload.get("results", [])
            store_places_results(
                self._cache,
                key,
                results,
                search_type=self.search_type,
                query_params={
                    "query": query.query,
                    "location": location,
                    "radius": query.radius_meters,
                    "type": self.search_type,
                    "category": query.category,
                },
                location=location,
                radius=query.radius_meters,
            )
            self._track_usage()
            return SourceOutcome(records=_as_records(results))

        if location is None:
            return SourceOutcome()
        cached = self._cache.find_nearby(location["lat"], location["lng"], query.radius_meters, NEARBY_CACHE_SCAN_LIMIT)
        records: List[RemotePlaceRecord] = []
        for results in cached:
            records.extend(_as_records(results))
        logger.info("Found %d cached places near %s", len(records), location)
        return SourceOutcome(records=records, cache_hit=bool(cached))

    def _track_usage(self) -> None:
        if self._executor is None or self._analytics is None:
            return
        cost = estimate_cost(self.search_type, self._settings.cost_estimates)
        submit_api_usage(self._executor, self._analytics, PLACES_PROVIDER, self.search_type, cost)
