"""Relevance scoring and ordering of deduplicated results."""

import math
from dataclasses import replace
from typing import Iterable, List, Optional

from directory_search.models import CanonicalResult, Coordinates

EARTH_RADIUS_METERS = 6371000

NAME_MATCH_WEIGHT = 10
DESCRIPTION_MATCH_WEIGHT = 5
CATEGORY_MATCH_WEIGHT = 3
VERIFIED_WEIGHT = 2
FEATURED_WEIGHT = 5
METERS_PER_PENALTY_POINT = 10000
MAX_DISTANCE_PENALTY = 5


def haversine_meters(origin: Coordinates, target: Coordinates) -> float:
    d_lat = math.radians(target.lat - origin.lat)
    d_lng = math.radians(target.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat)) * math.cos(math.radians(target.lat)) * math.sin(d_lng / 2) ** 2
    )
    a = min(1.0, a)
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_penalty(origin: Optional[Coordinates], target: Optional[Coordinates]) -> float:
    """One point per 10 km between caller and result, capped at 5."""
    if origin is None or target is None:
        return 0.0
    return min(MAX_DISTANCE_PENALTY, haversine_meters(origin, target) / METERS_PER_PENALTY_POINT)


def score(result: CanonicalResult, query: str, location: Optional[Coordinates] = None) -> float:
    needle = (query or "").lower()
    total = 0.0
    if needle in result.name.lower():
        total += NAME_MATCH_WEIGHT
    if needle in (result.description or "").lower():
        total += DESCRIPTION_MATCH_WEIGHT
    if needle in (result.category or "").lower():
        total += CATEGORY_MATCH_WEIGHT
    if result.rating:
        total += result.rating
    if result.verified:
        total += VERIFIED_WEIGHT
    if result.featured:
        total += FEATURED_WEIGHT
    total -= distance_penalty(location, result.coordinates)
    return total


def rank(
    results: Iterable[CanonicalResult],
    query: str,
    location: Optional[Coordinates] = None,
    max_results: Optional[int] = None,
) -> List[CanonicalResult]:
    """Score every result, sort by score descending and truncate.

    The sort is stable, so equal scores keep their input order.
    """
    scored = [replace(result, relevance_score=score(result, query, location)) for result in results]
    ordered = sorted(scored, key=lambda result: result.relevance_score, reverse=True)
    if max_results is not None:
        ordered = ordered[:max_results]
    return ordered
