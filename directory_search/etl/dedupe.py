"""Collapse results that describe the same real-world entity across sources."""

from typing import Dict, Iterable, List

from directory_search.models import CanonicalResult

IDENTITY_PREFIX_LENGTH = 20


def identity_key(result: CanonicalResult, prefix_length: int = IDENTITY_PREFIX_LENGTH) -> str:
    """Lower-cased name plus the first characters of the lower-cased location label.

    This is a heuristic: two distinct places with the same name and similar
    address prefixes collapse into one.
    """
    return f"{result.name.lower()}_{(result.location_label or '').lower()[:prefix_length]}"


def deduplicate(results: Iterable[CanonicalResult], prefix_length: int = IDENTITY_PREFIX_LENGTH) -> List[CanonicalResult]:
    """Keep one result per identity key.

    A later duplicate replaces the kept one only when its relevance score is
    strictly higher (unscored counts as 0); the survivor keeps the position
    where the key was first seen.
    """
    kept: Dict[str, CanonicalResult] = {}
    for result in results:
        key = identity_key(result, prefix_length)
        current = kept.get(key)
        if current is None or (result.relevance_score or 0) > (current.relevance_score or 0):
            kept[key] = result
    return list(kept.values())
