"""Abstract search acquisition interfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ats_search_core.models.job import RawSearchResult
from ats_search_core.models.request import PlatformQuery, SearchLimits


@runtime_checkable
class SearchStrategy(Protocol):
    """Capability that turns a platform query into raw search results."""

    async def search(self, query: PlatformQuery, limits: SearchLimits) -> list[RawSearchResult]:
        """Run the query and return raw (title, url) results."""
        ...


@dataclass
class SearchServiceRun:
    """Terminal state of a delegated search run."""

    status: str
    result_store_id: str | None


@runtime_checkable
class SearchServiceClient(Protocol):
    """Black-box search service: start a run, then read its result rows."""

    async def call(self, run_input: dict[str, object]) -> SearchServiceRun:
        """Start a run and wait for its terminal status."""
        ...

    async def read_rows(self, result_store_id: str) -> list[dict[str, object]]:
        """Read all result rows of a finished run."""
        ...
