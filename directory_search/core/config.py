"""Application configuration helpers."""

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"

# Approximate per-call USD cost of the places API, by endpoint.
DEFAULT_COST_ESTIMATES: Dict[str, float] = {
    "text_search": 0.032,
    "nearby_search": 0.032,
    "place_details": 0.017,
    "autocomplete": 0.00283,
}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    database_url: str
    port: int = 8080
    source_timeout_seconds: float = 8.0
    places_live_fetch: bool = True
    overpass_url: str = DEFAULT_OVERPASS_URL
    nominatim_url: str = DEFAULT_NOMINATIM_URL
    geodata_result_cap: int = 50
    max_workers: int = 8
    cost_estimates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_COST_ESTIMATES))


def _parse_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_cost_estimates(raw: str) -> Dict[str, float]:
    estimates = dict(DEFAULT_COST_ESTIMATES)
    if not raw:
        return estimates
    try:
        overrides = json.loads(raw)
        estimates.update({str(key): float(value) for key, value in overrides.items()})
    except (ValueError, TypeError, AttributeError) as exc:
        raise ConfigError("PLACES_COST_ESTIMATES must be a JSON object of endpoint -> cost") from exc
    return estimates


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_PLACES_API_KEY") or os.getenv("GOOGLE_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    port = _parse_number("PORT", "8080", int)
    source_timeout_seconds = _parse_number("SOURCE_TIMEOUT_SECONDS", "8", float)
    places_live_fetch = os.getenv("PLACES_LIVE_FETCH", "true").lower() in {"1", "true", "yes"}
    overpass_url = os.getenv("OVERPASS_URL") or DEFAULT_OVERPASS_URL
    nominatim_url = os.getenv("NOMINATIM_URL") or DEFAULT_NOMINATIM_URL
    geodata_result_cap = _parse_number("GEODATA_RESULT_CAP", "50", int)
    max_workers = _parse_number("SEARCH_MAX_WORKERS", "8", int)
    cost_estimates = _parse_cost_estimates(os.getenv("PLACES_COST_ESTIMATES", ""))

    if not database_url:
        logger.warning("DATABASE_URL is not set; using the in-process cache and skipping analytics.")
    if not google_api_key:
        logger.warning("GOOGLE_PLACES_API_KEY is not configured; live Google Places requests will be skipped.")

    return Settings(
        google_api_key=google_api_key,
        database_url=database_url,
        port=port,
        source_timeout_seconds=source_timeout_seconds,
        places_live_fetch=places_live_fetch,
        overpass_url=overpass_url,
        nominatim_url=nominatim_url,
        geodata_result_cap=geodata_result_cap,
        max_workers=max_workers,
        cost_estimates=cost_estimates,
    )
