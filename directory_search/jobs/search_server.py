"""HTTP entrypoint for the directory search API."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, Optional

import requests
from flask import Flask, jsonify, request

from directory_search.core import db
from directory_search.core.analytics import LoggingAnalyticsSink
from directory_search.core.cache import InMemoryCacheStore
from directory_search.core.config import ConfigError, Settings, get_settings
from directory_search.jobs.hybrid_search import (
    GeolocationError,
    HybridSearchService,
    LocationNotFoundError,
    parse_search_request,
)
from directory_search.jobs.places_search import PlacesSearchService, parse_places_request
from directory_search.sources.local_catalog import LocalCatalogSource
from directory_search.sources.public_geodata import PublicGeodataSource
from directory_search.sources.remote_places import RemotePlacesSource
from directory_search.vendors import nominatim
from directory_search.vendors.google_places import GooglePlacesError

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & services ----------
app = Flask(__name__)


@dataclass
class Services:
    hybrid: HybridSearchService
    places: PlacesSearchService


_services: Optional[Services] = None
_services_lock = threading.Lock()


def build_services(settings: Settings) -> Services:
    """Wire the cache, analytics sink and source adapters from settings."""
    if db.is_available():
        cache = db.PostgresCacheStore()
        analytics = db.PostgresAnalyticsSink()
    else:
        cache = InMemoryCacheStore()
        analytics = LoggingAnalyticsSink()

    fan_out_executor = ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="search-source")
    background_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="search-analytics")

    adapters = [
        RemotePlacesSource(cache, settings, executor=background_executor, analytics=analytics),
        PublicGeodataSource(settings),
        LocalCatalogSource(),
    ]
    hybrid = HybridSearchService(
        adapters,
        fan_out_executor,
        settings.source_timeout_seconds,
        analytics=analytics,
        analytics_executor=background_executor,
        geocoder=partial(nominatim.geocode, url=settings.nominatim_url, timeout=settings.source_timeout_seconds),
    )
    places = PlacesSearchService(cache, settings, executor=background_executor, analytics=analytics)
    return Services(hybrid=hybrid, places=places)


def _get_services() -> Services:
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services(get_settings())
    return _services


def _error(message: str, status: int, code: str) -> Any:
    return jsonify({"error": message, "errorCode": code, "results": [], "totalResults": 0}), status


def _json_body() -> Optional[Dict[str, Any]]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    return payload if isinstance(payload, dict) else None


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never touches the database."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "database_configured": bool(settings.database_url),
                "places_configured": bool(settings.google_api_key),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/search")
def hybrid_search() -> Any:
    """
    Search every enabled source and return merged, ranked results.
    Optional JSON fields: query, location {lat, lng}, radius, category,
    includeGoogle, includeOSM, includeLocal, maxResults, minRating,
    sessionId, locationStatus, locationQuery
    """
    payload = _json_body()
    if payload is None:
        return _error("request body must be a JSON object", 400, "invalid_request")

    try:
        query = parse_search_request(payload)
    except ValueError as exc:
        return _error(str(exc), 400, "invalid_request")

    user_agent = request.headers.get("User-Agent", "")
    try:
        response = _get_services().hybrid.search(query, user_agent=user_agent)
    except (GeolocationError, LocationNotFoundError) as exc:
        return _error(str(exc), 400, exc.code)
    except (nominatim.GeocodingError, requests.RequestException) as exc:
        logger.error("Geocoding failed: %s", exc)
        return _error("location lookup failed", 502, "geocoding_failed")
    except ConfigError as exc:
        logger.error("Hybrid search misconfigured: %s", exc)
        return _error(str(exc), 500, "configuration_error")
    except Exception as exc:  # noqa: BLE001
        logger.exception("Hybrid search failed: %s", exc)
        return _error("search failed", 500, "search_failed")

    return jsonify(response.to_dict()), 200


@app.post("/places/search")
def places_search() -> Any:
    """
    Cache-first Google Places lookup.
    Required JSON fields: query
    Optional: type (text_search | nearby_search | place_details | autocomplete),
    location {lat, lng}, radius, category, useCache
    """
    payload = _json_body()
    if payload is None:
        return _error("request body must be a JSON object", 400, "invalid_request")

    try:
        places_request = parse_places_request(payload)
    except ValueError as exc:
        return _error(str(exc), 400, "invalid_request")

    user_agent = request.headers.get("User-Agent", "")
    try:
        response = _get_services().places.search(places_request, user_agent=user_agent)
    except ConfigError as exc:
        logger.error("Places search misconfigured: %s", exc)
        return _error(str(exc), 500, "configuration_error")
    except GooglePlacesError as exc:
        logger.error("Google Places rejected the request: %s", exc)
        return _error(f"Google Places API error: {exc}", 502, "upstream_error")
    except Exception as exc:  # noqa: BLE001
        logger.exception("Places search failed: %s", exc)
        return _error("places search failed", 500, "search_failed")

    return jsonify(response), 200


def main() -> None:
    port = get_settings().port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
