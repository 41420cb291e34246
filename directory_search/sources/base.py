"""Source adapter interface."""

from __future__ import annotations

from typing import Protocol

from directory_search.models import SearchQuery, SourceOutcome


class SourceAdapter(Protocol):
    """Retrieves raw records from one data origin.

    ``fetch`` returns a successful outcome or raises; the dispatcher turns
    exceptions into failed outcomes.
    """

    name: str

    def enabled(self, query: SearchQuery) -> bool:
        ...

    def fetch(self, query: SearchQuery) -> SourceOutcome:
        ...
