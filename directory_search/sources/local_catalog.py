"""Adapter over the in-process static catalog."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from directory_search.models import SOURCE_LOCAL_STATIC, CatalogEntry, ResultKind, SearchQuery, SourceOutcome
from directory_search.sources import catalog_data


def default_catalog() -> List[CatalogEntry]:
    groups: Sequence[Tuple[ResultKind, List[Dict[str, Any]]]] = (
        (ResultKind.PROVIDER, catalog_data.SERVICE_PROVIDERS),
        (ResultKind.ORGANIZATION, catalog_data.FAMILY_ORGANIZATIONS + catalog_data.ADULT_SERVICES),
        (ResultKind.RESOURCE, catalog_data.EDUCATIONAL_RESOURCES),
    )
    return [CatalogEntry(kind=kind, payload=payload) for kind, payloads in groups for payload in payloads]


class LocalCatalogSource:
    """Serves the curated catalog; query and category matching happen after normalization."""

    name = SOURCE_LOCAL_STATIC

    def __init__(self, entries: Optional[List[CatalogEntry]] = None) -> None:
        self._entries = list(entries) if entries is not None else default_catalog()

    def enabled(self, query: SearchQuery) -> bool:
        return query.include_local

    def fetch(self, query: SearchQuery) -> SourceOutcome:
        return SourceOutcome(records=list(self._entries))
