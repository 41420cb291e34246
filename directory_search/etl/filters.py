"""Per-source result filters applied between normalization and deduplication."""

import logging
from typing import Iterable, List, Optional

from directory_search.models import SOURCE_PUBLIC_GEODATA, CanonicalResult, SearchQuery

logger = logging.getLogger(__name__)


def matches_query(result: CanonicalResult, query: str) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    haystacks = [result.name, result.description, result.category, *result.keywords]
    return any(needle in (text or "").lower() for text in haystacks)


def matches_category(result: CanonicalResult, category: Optional[str]) -> bool:
    needle = (category or "").strip().lower()
    if not needle or needle == "all":
        return True
    return needle in (result.category or "").lower()


def meets_min_rating(result: CanonicalResult, min_rating: Optional[float]) -> bool:
    if min_rating is None or result.rating is None:
        return True
    return result.rating >= min_rating


def apply_source_filters(results: Iterable[CanonicalResult], source: str, query: SearchQuery) -> List[CanonicalResult]:
    """Keep the results of one source that satisfy the query's filters.

    Geodata results were already selected by category on the server side, so
    only the rating filter applies to them.
    """
    text_filtered = source != SOURCE_PUBLIC_GEODATA
    kept: List[CanonicalResult] = []
    for result in results:
        if text_filtered and not matches_query(result, query.query):
            continue
        if text_filtered and not matches_category(result, query.category):
            continue
        if not meets_min_rating(result, query.min_rating):
            logger.debug("Skipping %s due to rating %.2f", result.id, result.rating)
            continue
        kept.append(result)
    return kept
