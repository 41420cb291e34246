"""Database helpers for the places cache, search analytics and API usage ledger."""

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from psycopg2 import extras, pool

from directory_search.core.analytics import SearchEvent
from directory_search.core.cache import CacheEntry, bounding_box
from directory_search.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.ThreadedConnectionPool] = None
_pool_lock = threading.Lock()


def init_pool(minconn: int = 1, maxconn: Optional[int] = None) -> pool.ThreadedConnectionPool:
    """Initialise and return the shared, thread-safe connection pool.

    By default the pool holds one connection per source worker plus headroom
    for request threads and background analytics writes.
    """
    global _connection_pool
    with _pool_lock:
        if _connection_pool is None:
            settings = get_settings()
            if not settings.database_url:
                raise RuntimeError("DATABASE_URL is required for database connections")
            _connection_pool = pool.ThreadedConnectionPool(
                minconn,
                maxconn or settings.max_workers + 4,
                dsn=settings.database_url,
                connect_timeout=10,
            )
            logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    except Exception:
        # Leave no aborted transaction on a pooled connection.
        conn.rollback()
        raise
    finally:
        pg_pool.putconn(conn)


_SELECT_CACHE_ENTRY = """
SELECT results, expires_at
FROM places_cache
WHERE cache_key = %(cache_key)s AND expires_at > %(now)s
LIMIT 1;
"""

_SELECT_NEARBY_ENTRIES = """
SELECT results
FROM places_cache
WHERE expires_at > %(now)s
  AND location_lat BETWEEN %(min_lat)s AND %(max_lat)s
  AND location_lng BETWEEN %(min_lng)s AND %(max_lng)s
LIMIT %(limit)s;
"""

_UPSERT_CACHE_ENTRY = """
INSERT INTO places_cache (
    cache_key,
    search_type,
    query_params,
    results,
    source,
    location_lat,
    location_lng,
    radius_meters,
    expires_at,
    updated_at
) VALUES (
    %(cache_key)s,
    %(search_type)s,
    %(query_params)s,
    %(results)s,
    %(source)s,
    %(location_lat)s,
    %(location_lng)s,
    %(radius_meters)s,
    %(expires_at)s,
    NOW()
)
ON CONFLICT (cache_key) DO UPDATE SET
    search_type = EXCLUDED.search_type,
    query_params = EXCLUDED.query_params,
    results = EXCLUDED.results,
    source = EXCLUDED.source,
    location_lat = EXCLUDED.location_lat,
    location_lng = EXCLUDED.location_lng,
    radius_meters = EXCLUDED.radius_meters,
    expires_at = EXCLUDED.expires_at,
    updated_at = NOW();
"""

_DELETE_EXPIRED = "DELETE FROM places_cache WHERE expires_at <= %(now)s;"

_INSERT_SEARCH_ANALYTICS = """
INSERT INTO search_analytics (
    search_query,
    search_type,
    location_lat,
    location_lng,
    category,
    cache_hit,
    response_time_ms,
    result_count,
    api_cost_estimate,
    user_agent
) VALUES (
    %(search_query)s,
    %(search_type)s,
    %(location_lat)s,
    %(location_lng)s,
    %(category)s,
    %(cache_hit)s,
    %(response_time_ms)s,
    %(result_count)s,
    %(api_cost_estimate)s,
    %(user_agent)s
);
"""

_UPSERT_API_USAGE = """
INSERT INTO api_usage_tracking (
    api_provider,
    endpoint,
    request_count,
    estimated_cost,
    date
) VALUES (
    %(api_provider)s,
    %(endpoint)s,
    1,
    %(estimated_cost)s,
    %(date)s
)
ON CONFLICT (api_provider, endpoint, date) DO UPDATE SET
    request_count = api_usage_tracking.request_count + 1,
    estimated_cost = COALESCE(api_usage_tracking.estimated_cost, 0) + EXCLUDED.estimated_cost;
"""


def _prepare_cache_params(key: str, value: Any, ttl: timedelta, metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "cache_key": key,
        "search_type": metadata.get("search_type") or key.split("_", 1)[0],
        "query_params": extras.Json(metadata.get("query_params") or {}),
        "results": extras.Json(value),
        "source": metadata.get("source") or "google_places",
        "location_lat": metadata.get("location_lat"),
        "location_lng": metadata.get("location_lng"),
        "radius_meters": metadata.get("radius_meters"),
        "expires_at": datetime.now(timezone.utc) + ttl,
    }


class PostgresCacheStore:
    """Cache store backed by the ``places_cache`` table."""

    def get(self, key: str) -> Optional[CacheEntry]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_SELECT_CACHE_ENTRY, {"cache_key": key, "now": datetime.now(timezone.utc)})
                row = cur.fetchone()
        if row is None:
            return None
        results, expires_at = row
        return CacheEntry(value=results, expires_at=expires_at)

    def put(self, key: str, value: Any, ttl: timedelta, **metadata: Any) -> None:
        params = _prepare_cache_params(key, value, ttl, metadata)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_UPSERT_CACHE_ENTRY, params)
            conn.commit()
        logger.debug("Cached %s until %s", key, params["expires_at"])

    def find_nearby(self, lat: float, lng: float, radius_meters: float, limit: int = 10) -> List[Any]:
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_meters)
        params = {
            "now": datetime.now(timezone.utc),
            "min_lat": min_lat,
            "max_lat": max_lat,
            "min_lng": min_lng,
            "max_lng": max_lng,
            "limit": limit,
        }
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_SELECT_NEARBY_ENTRIES, params)
                rows = cur.fetchall()
        return [row[0] for row in rows]

    def purge_expired(self) -> int:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_DELETE_EXPIRED, {"now": datetime.now(timezone.utc)})
                deleted = cur.rowcount
            conn.commit()
        logger.info("Purged %d expired cache rows", deleted)
        return deleted


class PostgresAnalyticsSink:
    """Writes search analytics and API usage to their tables."""

    def log_search(self, event: SearchEvent) -> None:
        params = {
            "search_query": event.search_query,
            "search_type": event.search_type,
            "location_lat": event.location_lat,
            "location_lng": event.location_lng,
            "category": event.category,
            "cache_hit": event.cache_hit,
            "response_time_ms": event.response_time_ms,
            "result_count": event.result_count,
            "api_cost_estimate": event.api_cost_estimate,
            "user_agent": event.user_agent,
        }
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_INSERT_SEARCH_ANALYTICS, params)
            conn.commit()

    def record_api_usage(self, provider: str, endpoint: str, estimated_cost: float) -> None:
        params = {
            "api_provider": provider,
            "endpoint": endpoint,
            "estimated_cost": estimated_cost,
            "date": date.today().isoformat(),
        }
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(_UPSERT_API_USAGE, params)
            conn.commit()
        logger.debug("Recorded %s/%s usage (%.5f USD)", provider, endpoint, estimated_cost)


def is_available() -> bool:
    """Whether a database is configured for the cache and analytics tables."""
    return bool(get_settings().database_url)
