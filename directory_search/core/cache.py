"""Cache store for raw places API responses."""

import hashlib
import json
import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

SEARCH_TTL = timedelta(hours=24)
DETAILS_TTL = timedelta(hours=168)

_METERS_PER_DEGREE = 111000


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: datetime


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[CacheEntry]:
        ...

    def put(self, key: str, value: Any, ttl: timedelta, **metadata: Any) -> None:
        ...

    def find_nearby(self, lat: float, lng: float, radius_meters: float, limit: int = 10) -> List[List[Dict[str, Any]]]:
        ...

    def purge_expired(self) -> int:
        ...


def build_cache_key(
    search_type: str,
    query: str,
    location: Optional[Dict[str, float]],
    radius: Optional[float],
    category: Optional[str],
) -> str:
    """Stable key for a set of search parameters, prefixed with the search type."""
    params = {
        "query": (query or "").strip().lower(),
        "location": location,
        "radius": radius,
        "type": search_type,
        "category": (category or "").strip().lower() or None,
    }
    digest = hashlib.sha256(json.dumps(params, sort_keys=True).encode("utf-8")).hexdigest()
    return f"{search_type}_{digest}"


def ttl_for(search_type: str) -> timedelta:
    return DETAILS_TTL if search_type == "place_details" else SEARCH_TTL


def bounding_box(lat: float, lng: float, radius_meters: float) -> Tuple[float, float, float, float]:
    """Approximate (min_lat, max_lat, min_lng, max_lng) box around a point."""
    lat_range = radius_meters / _METERS_PER_DEGREE
    cos_lat = math.cos(math.radians(lat))
    lng_range = radius_meters / (_METERS_PER_DEGREE * cos_lat) if cos_lat > 1e-9 else 180.0
    return lat - lat_range, lat + lat_range, lng - lng_range, lng + lng_range


class InMemoryCacheStore:
    """Process-local TTL cache used when no database is configured."""

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry["expires_at"] <= datetime.now(timezone.utc):
                del self._entries[key]
                return None
            return CacheEntry(value=entry["value"], expires_at=entry["expires_at"])

    def put(self, key: str, value: Any, ttl: timedelta, **metadata: Any) -> None:
        with self._lock:
            self._entries[key] = {
                "value": value,
                "expires_at": datetime.now(timezone.utc) + ttl,
                "location_lat": metadata.get("location_lat"),
                "location_lng": metadata.get("location_lng"),
            }

    def find_nearby(self, lat: float, lng: float, radius_meters: float, limit: int = 10) -> List[List[Dict[str, Any]]]:
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_meters)
        now = datetime.now(timezone.utc)
        found: List[List[Dict[str, Any]]] = []
        with self._lock:
            for entry in self._entries.values():
                if entry["expires_at"] <= now:
                    continue
                entry_lat, entry_lng = entry["location_lat"], entry["location_lng"]
                if entry_lat is None or entry_lng is None:
                    continue
                if min_lat <= entry_lat <= max_lat and min_lng <= entry_lng <= max_lng:
                    found.append(entry["value"])
                if len(found) >= limit:
                    break
        return found

    def purge_expired(self) -> int:
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry["expires_at"] <= now]
            for key in expired:
                del self._entries[key]
        logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)
