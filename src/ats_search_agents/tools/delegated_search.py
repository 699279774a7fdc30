"""Delegated search strategy: run an external search service and read its rows."""

from __future__ import annotations

import structlog

from ats_search_core.constants import SEARCH_SERVICE_SUCCEEDED
from ats_search_core.exceptions import SearchServiceError
from ats_search_core.interfaces.search import SearchServiceClient
from ats_search_core.models.job import RawSearchResult
from ats_search_core.models.request import PlatformQuery, SearchLimits

logger = structlog.get_logger()


def build_run_input(query: PlatformQuery, limits: SearchLimits) -> dict[str, object]:
    """Run input for the search service."""
    run_input: dict[str, object] = {
        "queries": query.text,
        "maxPagesPerQuery": 1,
        "resultsPerPage": limits.max_results,
        "mode": "search",
    }
    if limits.country:
        run_input["countryCode"] = limits.country.lower()
    return run_input


def rows_to_results(rows: list[dict[str, object]]) -> list[RawSearchResult]:
    """Map service rows to raw results.

    Rows are either flat ``{url, title}`` objects or page rows carrying an
    ``organicResults`` list of them.
    """
    results: list[RawSearchResult] = []
    for row in rows:
        organic = row.get("organicResults")
        items = organic if isinstance(organic, list) else [row]
        for item in items:
            if not isinstance(item, dict):
                continue
            url = item.get("url")
            results.append(
                RawSearchResult(
                    title=str(item.get("title") or ""),
                    url=url if isinstance(url, str) else None,
                )
            )
    return results


class DelegatedSearchStrategy:
    """Search by delegating each platform query to an external search service."""

    def __init__(self, client: SearchServiceClient) -> None:
        """Initialize with a search service client."""
        self._client = client

    async def search(self, query: PlatformQuery, limits: SearchLimits) -> list[RawSearchResult]:
        """Run the service for one platform query; non-success raises SearchServiceError."""
        run = await self._client.call(build_run_input(query, limits))

        if run.status != SEARCH_SERVICE_SUCCEEDED or not run.result_store_id:
            msg = f"Search service run for {query.platform} ended with status {run.status}"
            raise SearchServiceError(msg, status=run.status)

        rows = await self._client.read_rows(run.result_store_id)
        results = rows_to_results(rows)
        logger.info(
            "delegated_search_complete",
            platform=query.platform,
            rows=len(rows),
            results=len(results),
        )
        return results
