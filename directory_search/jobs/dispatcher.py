"""Concurrent fan-out of a search to every enabled source adapter."""

import logging
from concurrent.futures import Executor, Future, wait
from typing import Dict, Iterable, List, Tuple

from directory_search.models import SearchQuery, SourceOutcome
from directory_search.sources.base import SourceAdapter

logger = logging.getLogger(__name__)


def fan_out(
    query: SearchQuery,
    adapters: Iterable[SourceAdapter],
    executor: Executor,
    timeout: float,
) -> List[Tuple[str, SourceOutcome]]:
    """Run every enabled adapter concurrently and settle all of them.

    Each source gets the same deadline. A source that raises, returns something
    other than a SourceOutcome, or misses the deadline yields a failed outcome;
    the others are unaffected.
    """
    futures: Dict[str, Future] = {}
    for adapter in adapters:
        if not adapter.enabled(query):
            logger.debug("Source %s disabled for this query", adapter.name)
            continue
        futures[adapter.name] = executor.submit(adapter.fetch, query)

    if not futures:
        return []

    _, pending = wait(list(futures.values()), timeout=timeout)

    outcomes: List[Tuple[str, SourceOutcome]] = []
    for name, future in futures.items():
        if future in pending:
            future.cancel()
            logger.warning("Search source %s timed out after %.1fs", name, timeout)
            outcomes.append((name, SourceOutcome(error="timeout")))
            continue
        try:
            outcome = future.result()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Search source %s failed: %s", name, exc)
            outcomes.append((name, SourceOutcome(error=str(exc) or type(exc).__name__)))
            continue
        if not isinstance(outcome, SourceOutcome):
            logger.warning("Search source %s returned malformed data: %r", name, type(outcome).__name__)
            outcomes.append((name, SourceOutcome(error="malformed response")))
            continue
        outcomes.append((name, outcome))
    return outcomes
