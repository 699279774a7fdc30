"""Tests for the sequential aggregation pipeline."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from structlog.contextvars import get_contextvars

from ats_search_agents.orchestrator.pipeline import (
    AggregationPipeline,
    commit_posting,
    is_duplicate,
)
from ats_search_agents.observability import CostGovernor
from ats_search_agents.tools.direct_scrape import DirectScrapeStrategy
from ats_search_agents.tools.url_utils import query_cache_key
from ats_search_core.constants import CACHE_FRESHNESS_MS
from ats_search_core.exceptions import ScrapingError
from ats_search_core.models.job import CacheEntry, RawSearchResult
from ats_search_core.models.request import SearchRequest
from ats_search_infra.cache.search_cache import SearchResultCache
from tests.mocks.mock_factories import (
    make_posting,
    make_raw_result,
    make_run_state,
    make_search_request,
)
from tests.mocks.mock_settings import TEST_PLATFORMS, make_settings
from tests.mocks.mock_tools import (
    InMemoryCacheClient,
    InMemoryDebugStore,
    InMemorySink,
    ScriptedStrategy,
)

T0 = 1_767_225_600_000

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _greenhouse(n: int, query: str = "") -> RawSearchResult:
    return make_raw_result(f"https://boards.greenhouse.io/acme/jobs/{n}{query}", f"Engineer {n}")


def _lever(n: int) -> RawSearchResult:
    return make_raw_result(f"https://jobs.lever.co/globex/{n}", f"Developer {n}")


def _pipeline(
    strategy: object,
    cache_client: InMemoryCacheClient,
    sink: InMemorySink,
    settings: MagicMock | None = None,
) -> AggregationPipeline:
    return AggregationPipeline(
        settings or make_settings(),
        strategy=strategy,  # type: ignore[arg-type]
        cache=SearchResultCache(cache_client),
        sink=sink,
    )


async def _seed(cache_client: InMemoryCacheClient, request: SearchRequest, timestamp: int) -> None:
    """Store a cache entry for the request."""
    entry = CacheEntry(timestamp=timestamp, results=[make_posting()])
    await SearchResultCache(cache_client).set(query_cache_key(request), entry)


# ---------------------------------------------------------------------------
# State helpers
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestCommitPosting:
    """Test dedup and commit bookkeeping."""

    def test_commit_records_everything(self) -> None:
        """Commit updates seen set, postings, per-platform count, and cost."""
        state = make_run_state()
        governor = CostGovernor(state.budget)
        posting = make_posting()

        assert is_duplicate(state, posting) is False
        state = commit_posting(state, posting, governor)

        assert is_duplicate(state, posting) is True
        assert state.postings == [posting]
        assert state.platform_counts["greenhouse.io"] == 1
        assert state.budget.accumulated == 0.25


# ---------------------------------------------------------------------------
# Acquisition runs
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestAggregationPipeline:
    """Test fresh runs over scripted platform results."""

    @pytest.mark.asyncio
    async def test_collects_all_platforms_in_order(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """Every platform is searched in order and valid results are committed."""
        strategy = ScriptedStrategy(
            {"greenhouse.io": [_greenhouse(1), _greenhouse(2)], "lever.co": [_lever(7)]}
        )
        result = await _pipeline(strategy, cache_client, sink).run(search_request, run_id="r1")

        assert strategy.searched_platforms == TEST_PLATFORMS
        assert result.status == "success"
        assert result.run_id == "r1"
        assert result.postings == 3
        assert result.platforms_attempted == 3
        assert result.cache_hit is False
        assert result.cache_key == query_cache_key(search_request)
        assert len(sink.pushes) == 1
        assert [p.company for p in sink.postings] == ["Acme", "Acme", "Globex"]

    @pytest.mark.asyncio
    async def test_urls_unique_and_canonical(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """Variants of the same posting URL are emitted once, without query strings."""
        strategy = ScriptedStrategy(
            {
                "greenhouse.io": [
                    _greenhouse(1),
                    _greenhouse(1, "?gh_src=linkedin"),
                    _greenhouse(1, "#apply"),
                    _greenhouse(2),
                ]
            }
        )
        await _pipeline(strategy, cache_client, sink).run(search_request)

        urls = [p.apply_url for p in sink.postings]
        assert urls == [
            "https://boards.greenhouse.io/acme/jobs/1",
            "https://boards.greenhouse.io/acme/jobs/2",
        ]
        assert len(set(urls)) == len(urls)

    @pytest.mark.asyncio
    async def test_job_id_is_last_path_segment(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """jobId is derived from the canonical URL."""
        strategy = ScriptedStrategy({"greenhouse.io": [_greenhouse(41)], "lever.co": [_lever(9)]})
        await _pipeline(strategy, cache_client, sink).run(search_request)

        for posting in sink.postings:
            assert posting.job_id == posting.apply_url.rstrip("/").rsplit("/", 1)[-1]

    @pytest.mark.asyncio
    async def test_search_engine_urls_never_emitted(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """Links back to the search engine are dropped."""
        strategy = ScriptedStrategy(
            {
                "greenhouse.io": [
                    make_raw_result("https://www.google.com/search?q=site:greenhouse.io"),
                    make_raw_result("https://www.google.com/url?q=https://boards.greenhouse.io/x"),
                    _greenhouse(3),
                ]
            }
        )
        await _pipeline(strategy, cache_client, sink).run(search_request)

        assert [p.apply_url for p in sink.postings] == ["https://boards.greenhouse.io/acme/jobs/3"]
        assert all("google." not in p.apply_url for p in sink.postings)

    @pytest.mark.asyncio
    async def test_per_platform_cap(
        self,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """No platform contributes more than maxResultsPerSource postings."""
        request = make_search_request(max_results_per_source=2)
        strategy = ScriptedStrategy(
            {
                "greenhouse.io": [_greenhouse(n) for n in range(5)],
                "lever.co": [_lever(n) for n in range(3)],
            }
        )
        result = await _pipeline(strategy, cache_client, sink).run(request)

        assert result.postings == 4
        platforms = [p.platform for p in sink.postings]
        assert platforms.count("greenhouse.io") == 2
        assert platforms.count("lever.co") == 2

    @pytest.mark.asyncio
    async def test_platform_failure_continues(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """A failing platform is recorded and the run moves on."""
        strategy = ScriptedStrategy(
            {
                "greenhouse.io": [_greenhouse(1)],
                "lever.co": ScrapingError("blocked"),
                "ashbyhq.com": RuntimeError("parser crashed"),
            }
        )
        result = await _pipeline(strategy, cache_client, sink).run(search_request)

        assert strategy.searched_platforms == TEST_PLATFORMS
        assert result.status == "success"
        assert result.postings == 1
        assert result.platforms_failed == 2
        assert [(e.platform, e.error_type) for e in result.errors] == [
            ("lever.co", "ScrapingError"),
            ("ashbyhq.com", "RuntimeError"),
        ]

    @pytest.mark.asyncio
    async def test_zero_results_still_finalized(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """An empty run writes an empty dataset push and an empty cache entry."""
        result = await _pipeline(ScriptedStrategy(), cache_client, sink).run(search_request)

        assert result.postings == 0
        assert sink.pushes == [[]]
        entry = await SearchResultCache(cache_client).get(query_cache_key(search_request))
        assert entry is not None
        assert entry.results == []

    @pytest.mark.asyncio
    async def test_run_context_cleared(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """Log context is unbound after the run."""
        await _pipeline(ScriptedStrategy(), cache_client, sink).run(search_request)
        assert get_contextvars() == {}


# ---------------------------------------------------------------------------
# Cost ceiling
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestCostCeiling:
    """Test the cost governor inside a run."""

    @pytest.mark.asyncio
    async def test_ceiling_stops_after_two_results(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """ceiling = start + 2 * per emits exactly two postings and searches no further."""
        settings = make_settings(
            run_start_cost_usd=0.5,
            cost_per_result_usd=0.1,
            max_total_charge_usd=0.5 + 2 * 0.1,
        )
        strategy = ScriptedStrategy(
            {
                "greenhouse.io": [_greenhouse(n) for n in range(5)],
                "lever.co": [_lever(1)],
            }
        )
        result = await _pipeline(strategy, cache_client, sink, settings).run(search_request)

        assert result.postings == 2
        assert len(sink.postings) == 2
        assert result.status == "partial"
        assert result.stopped_early is True
        assert strategy.searched_platforms == ["greenhouse.io"]
        assert result.estimated_cost_usd <= 0.7 + 1e-9

    @pytest.mark.asyncio
    async def test_budget_spent_at_platform_boundary_stops_run(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """Spending the last allowed result on a platform's final candidate skips the rest."""
        settings = make_settings(
            run_start_cost_usd=0.5,
            cost_per_result_usd=0.1,
            max_total_charge_usd=0.5 + 2 * 0.1,
        )
        strategy = ScriptedStrategy(
            {
                "greenhouse.io": [_greenhouse(1), _greenhouse(2)],
                "lever.co": [_lever(1)],
            }
        )
        result = await _pipeline(strategy, cache_client, sink, settings).run(search_request)

        assert strategy.searched_platforms == ["greenhouse.io"]
        assert result.postings == 2
        assert result.status == "partial"
        assert result.stopped_early is True
        assert result.platforms_attempted == 1

    @pytest.mark.asyncio
    async def test_start_cost_above_ceiling_searches_nothing(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """A ceiling that cannot cover one result stops before the first platform."""
        settings = make_settings(
            run_start_cost_usd=1.0, cost_per_result_usd=0.1, max_total_charge_usd=0.5
        )
        strategy = ScriptedStrategy({"greenhouse.io": [_greenhouse(1)]})
        result = await _pipeline(strategy, cache_client, sink, settings).run(search_request)

        assert strategy.searched_platforms == []
        assert result.postings == 0
        assert result.status == "partial"
        assert sink.pushes == [[]]

    @pytest.mark.asyncio
    async def test_no_ceiling_emits_everything(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """Without a ceiling the governor never stops the run."""
        strategy = ScriptedStrategy({"greenhouse.io": [_greenhouse(n) for n in range(10)]})
        result = await _pipeline(strategy, cache_client, sink).run(search_request)

        assert result.postings == 10
        assert result.stopped_early is False
        assert result.estimated_cost_usd == 2.5

    @pytest.mark.asyncio
    async def test_partial_results_are_cached(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """A run stopped by the ceiling still writes its cache entry."""
        settings = make_settings(
            run_start_cost_usd=0.0, cost_per_result_usd=1.0, max_total_charge_usd=1.0
        )
        strategy = ScriptedStrategy({"greenhouse.io": [_greenhouse(1), _greenhouse(2)]})
        await _pipeline(strategy, cache_client, sink, settings).run(search_request)

        entry = await SearchResultCache(cache_client).get(query_cache_key(search_request))
        assert entry is not None
        assert len(entry.results) == 1


# ---------------------------------------------------------------------------
# Cache short-circuit
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestCacheShortCircuit:
    """Test serving repeated requests from the cache."""

    @pytest.mark.asyncio
    async def test_repeat_request_served_from_cache(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """A second identical run acquires nothing and pushes the same postings."""
        strategy = ScriptedStrategy({"greenhouse.io": [_greenhouse(1)], "lever.co": [_lever(2)]})
        pipeline = _pipeline(strategy, cache_client, sink)

        first = await pipeline.run(search_request)
        calls_after_first = len(strategy.calls)
        second = await pipeline.run(search_request)

        assert len(strategy.calls) == calls_after_first
        assert second.status == "cached"
        assert second.cache_hit is True
        assert second.postings == first.postings
        assert sink.pushes[0] == sink.pushes[1]
        assert len(cache_client.set_calls) == 1

    @pytest.mark.asyncio
    async def test_force_fresh_bypasses_cache(
        self,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """forceFresh re-searches every platform even with a fresh entry."""
        request = make_search_request(force_fresh=True)
        await _seed(cache_client, request, timestamp=T0)
        strategy = ScriptedStrategy({"lever.co": [_lever(1)]})

        with patch("ats_search_agents.orchestrator.pipeline.now_ms", return_value=T0 + 1):
            result = await _pipeline(strategy, cache_client, sink).run(request)

        assert result.cache_hit is False
        assert strategy.searched_platforms == TEST_PLATFORMS
        assert [p.apply_url for p in sink.postings] == ["https://jobs.lever.co/globex/1"]

    @pytest.mark.asyncio
    async def test_entry_inside_window_is_served(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """One millisecond before expiry the entry is still served."""
        await _seed(cache_client, search_request, timestamp=T0)
        strategy = ScriptedStrategy()

        with patch(
            "ats_search_agents.orchestrator.pipeline.now_ms",
            return_value=T0 + CACHE_FRESHNESS_MS - 1,
        ):
            result = await _pipeline(strategy, cache_client, sink).run(search_request)

        assert result.status == "cached"
        assert strategy.calls == []
        assert sink.postings == [make_posting()]

    @pytest.mark.asyncio
    async def test_stale_entry_is_refreshed(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """At exactly three hours old the entry is stale and replaced."""
        await _seed(cache_client, search_request, timestamp=T0)
        strategy = ScriptedStrategy({"greenhouse.io": [_greenhouse(5)]})

        with patch(
            "ats_search_agents.orchestrator.pipeline.now_ms",
            return_value=T0 + CACHE_FRESHNESS_MS,
        ):
            result = await _pipeline(strategy, cache_client, sink).run(search_request)

        assert result.status == "success"
        assert strategy.searched_platforms == TEST_PLATFORMS
        entry = await SearchResultCache(cache_client).get(query_cache_key(search_request))
        assert entry is not None
        assert entry.timestamp == T0 + CACHE_FRESHNESS_MS
        assert [p.job_id for p in entry.results] == ["5"]

    @pytest.mark.asyncio
    async def test_corrupt_entry_treated_as_miss(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
    ) -> None:
        """An unreadable cache blob triggers a fresh search."""
        cache_client.store[query_cache_key(search_request)] = "not-json"
        strategy = ScriptedStrategy()
        await _pipeline(strategy, cache_client, sink).run(search_request)
        assert strategy.searched_platforms == TEST_PLATFORMS


# ---------------------------------------------------------------------------
# End to end with the direct scrape strategy
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestDirectScrapeRun:
    """Run the pipeline over DirectScrapeStrategy with a mocked HTTP client."""

    @pytest.mark.asyncio
    async def test_unparseable_pages_yield_empty_run(
        self,
        search_request: SearchRequest,
        cache_client: InMemoryCacheClient,
        sink: InMemorySink,
        debug_store: InMemoryDebugStore,
    ) -> None:
        """When no selector matches, the run ends with zero postings but still finalizes."""
        settings = make_settings()
        response = MagicMock()
        response.text = "<html><body>unusual traffic</body></html>"
        response.raise_for_status = MagicMock()
        mock_http = AsyncMock()
        mock_http.get.return_value = response
        mock_http.__aenter__ = AsyncMock(return_value=mock_http)
        mock_http.__aexit__ = AsyncMock(return_value=None)

        strategy = DirectScrapeStrategy(settings, debug_store, chain=())
        with patch("httpx.AsyncClient", return_value=mock_http):
            result = await _pipeline(strategy, cache_client, sink, settings).run(search_request)

        assert result.status == "success"
        assert result.postings == 0
        assert result.platforms_failed == 0
        assert sink.pushes == [[]]
        assert len(cache_client.set_calls) == 1
        assert set(debug_store.saved) == {f"debug_{p}" for p in TEST_PLATFORMS}
