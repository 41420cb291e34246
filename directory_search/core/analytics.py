"""Search analytics and API usage tracking.

Both are side effects of a search: they are submitted to an executor and never
awaited, and any failure is logged and swallowed so it cannot affect the
search response.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from directory_search.core.config import DEFAULT_COST_ESTIMATES

logger = logging.getLogger(__name__)

PLACES_PROVIDER = "google_places"


@dataclass(frozen=True)
class SearchEvent:
    search_query: str
    search_type: str
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    category: Optional[str] = None
    cache_hit: bool = False
    response_time_ms: int = 0
    result_count: int = 0
    api_cost_estimate: float = 0.0
    user_agent: str = ""


class AnalyticsSink(Protocol):
    def log_search(self, event: SearchEvent) -> None:
        ...

    def record_api_usage(self, provider: str, endpoint: str, estimated_cost: float) -> None:
        ...


class LoggingAnalyticsSink:
    """Fallback sink that only writes analytics to the application log."""

    def log_search(self, event: SearchEvent) -> None:
        logger.info(
            "search type=%s query=%r results=%d cache_hit=%s response_time_ms=%d",
            event.search_type,
            event.search_query,
            event.result_count,
            event.cache_hit,
            event.response_time_ms,
        )

    def record_api_usage(self, provider: str, endpoint: str, estimated_cost: float) -> None:
        logger.info("api usage provider=%s endpoint=%s cost=%.5f", provider, endpoint, estimated_cost)


def estimate_cost(search_type: str, estimates: Optional[Dict[str, float]] = None) -> float:
    """Estimated USD cost of one places API call of the given type."""
    table = estimates or DEFAULT_COST_ESTIMATES
    return table.get(search_type, DEFAULT_COST_ESTIMATES["text_search"])


def _log_search_safe(sink: AnalyticsSink, event: SearchEvent) -> None:
    try:
        sink.log_search(event)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to record search analytics for %r: %s", event.search_query, exc)


def _record_usage_safe(sink: AnalyticsSink, provider: str, endpoint: str, estimated_cost: float) -> None:
    try:
        sink.record_api_usage(provider, endpoint, estimated_cost)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to record API usage for %s/%s: %s", provider, endpoint, exc)


def submit_search_event(executor: Executor, sink: AnalyticsSink, event: SearchEvent) -> Optional[Future]:
    """Fire-and-forget a search analytics write."""
    try:
        return executor.submit(_log_search_safe, sink, event)
    except RuntimeError as exc:
        # Executor already shut down.
        logger.warning("Dropping search analytics event: %s", exc)
        return None


def submit_api_usage(
    executor: Executor, sink: AnalyticsSink, provider: str, endpoint: str, estimated_cost: float
) -> Optional[Future]:
    """Fire-and-forget an API usage ledger increment."""
    try:
        return executor.submit(_record_usage_safe, sink, provider, endpoint, estimated_cost)
    except RuntimeError as exc:
        logger.warning("Dropping API usage record: %s", exc)
        return None
