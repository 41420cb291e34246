"""Adapter over OpenStreetMap data fetched through Overpass."""

import logging
import threading
from typing import Any, Dict, List, Optional

from directory_search.core.config import Settings
from directory_search.models import SOURCE_PUBLIC_GEODATA, GeodataElement, SearchQuery, SourceOutcome
from directory_search.vendors import overpass

logger = logging.getLogger(__name__)

_CANDIDATE_TYPES = {"node", "way", "relation"}


class SupersededRequestError(RuntimeError):
    """Raised when a newer geodata request from the same session replaced this one."""


class InflightRequests:
    """Tracks the latest geodata request per session; starting a new one cancels the old."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Dict[str, threading.Event] = {}

    def begin(self, session_id: str) -> threading.Event:
        cancelled = threading.Event()
        with self._lock:
            previous = self._current.get(session_id)
            if previous is not None:
                previous.set()
                logger.debug("Superseding in-flight geodata request for session %s", session_id)
            self._current[session_id] = cancelled
        return cancelled

    def finish(self, session_id: str, cancelled: threading.Event) -> None:
        with self._lock:
            if self._current.get(session_id) is cancelled:
                del self._current[session_id]


def build_records(elements: List[Dict[str, Any]], category: str, cap: int) -> List[GeodataElement]:
    """Tagged elements become candidates; untagged nodes only serve as coordinate lookups."""
    nodes_by_id = {el["id"]: el for el in elements if el.get("type") == "node" and "id" in el}
    candidates = [el for el in elements if el.get("tags") and el.get("type") in _CANDIDATE_TYPES]
    return [GeodataElement(element=el, category=category, nodes_by_id=nodes_by_id) for el in candidates[:cap]]


class PublicGeodataSource:
    name = SOURCE_PUBLIC_GEODATA

    def __init__(self, settings: Settings, inflight: Optional[InflightRequests] = None) -> None:
        self._settings = settings
        self._inflight = inflight or InflightRequests()

    def enabled(self, query: SearchQuery) -> bool:
        return query.include_osm and query.location is not None

    def fetch(self, query: SearchQuery) -> SourceOutcome:
        if query.location is None:
            return SourceOutcome()
        category = overpass.resolve_category(query.category)
        if category is None:
            logger.info("No geodata category matches %r; skipping geodata query", query.category)
            return SourceOutcome()

        cancelled: Optional[threading.Event] = None
        if query.session_id:
            cancelled = self._inflight.begin(query.session_id)
        try:
            elements = overpass.fetch_elements(
                query.location.lat,
                query.location.lng,
                query.radius_meters,
                category,
                url=self._settings.overpass_url,
                timeout=self._settings.source_timeout_seconds,
            )
            if cancelled is not None and cancelled.is_set():
                raise SupersededRequestError(f"geodata request for session {query.session_id} was superseded")
        finally:
            if cancelled is not None:
                self._inflight.finish(query.session_id, cancelled)

        records = build_records(elements, category, self._settings.geodata_result_cap)
        logger.info("Fetched %d geodata candidates for %s", len(records), category)
        return SourceOutcome(records=records)
