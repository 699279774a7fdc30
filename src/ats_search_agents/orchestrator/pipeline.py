"""Sequential async aggregation pipeline with a cache short-circuit."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from ats_search_agents.observability import (
    CostGovernor,
    bind_run_context,
    budget_from_settings,
    clear_run_context,
    platform_context,
    trace_pipeline_run,
    trace_platform,
)
from ats_search_agents.tools.extractor import normalize_result
from ats_search_agents.tools.url_utils import query_cache_key
from ats_search_core.interfaces.search import SearchStrategy
from ats_search_core.interfaces.sink import OutputSink
from ats_search_core.models.job import CacheEntry, JobPosting
from ats_search_core.models.request import PlatformQuery, SearchLimits, SearchRequest
from ats_search_core.models.run import PlatformError, RunResult, new_run_id
from ats_search_core.state import RunState
from ats_search_infra.cache.search_cache import SearchResultCache, is_fresh, now_ms

if TYPE_CHECKING:
    from ats_search_core.config.settings import Settings

logger = structlog.get_logger()


def is_duplicate(state: RunState, posting: JobPosting) -> bool:
    """Check whether the posting's canonical URL was already emitted this run."""
    return posting.apply_url in state.seen_urls


def commit_posting(state: RunState, posting: JobPosting, governor: CostGovernor) -> RunState:
    """Record a posting as emitted: dedup set, accumulator, counts, and cost."""
    state.seen_urls.add(posting.apply_url)
    state.postings.append(posting)
    state.platform_counts[posting.platform] += 1
    governor.commit()
    return state


class AggregationPipeline:
    """Fan a search request out over the ATS platforms, in order, one at a time."""

    def __init__(
        self,
        settings: Settings,
        strategy: SearchStrategy,
        cache: SearchResultCache,
        sink: OutputSink,
    ) -> None:
        """Initialize with settings and the run's collaborators."""
        self.settings = settings
        self._strategy = strategy
        self._cache = cache
        self._sink = sink

    async def run(self, request: SearchRequest, run_id: str | None = None) -> RunResult:
        """Serve from cache when fresh, otherwise search every platform and finalize."""
        start = time.monotonic()
        run_id = run_id or new_run_id(self.settings.run_id_prefix)
        cache_key = query_cache_key(request)
        bind_run_context(run_id, cache_key)

        try:
            logger.info("pipeline_start", query=request.query, location=request.location)

            async with trace_pipeline_run(run_id, cache_key) as root_span:
                cached = await self._check_cache(cache_key, request)
                if cached is not None:
                    await self._sink.push(cached.results)
                    logger.info("cache_hit", postings=len(cached.results))
                    if root_span is not None:
                        root_span.set_attribute("pipeline.cache_hit", True)
                    return RunResult(
                        run_id=run_id,
                        status="cached",
                        cache_key=cache_key,
                        cache_hit=True,
                        postings=len(cached.results),
                        duration_seconds=time.monotonic() - start,
                    )

                state = RunState(
                    run_id=run_id,
                    request=request,
                    budget=budget_from_settings(self.settings),
                    cache_key=cache_key,
                )
                governor = CostGovernor(state.budget)

                for platform in self.settings.platforms:
                    if not governor.can_emit():
                        state.stopped_early = True
                        logger.info(
                            "cost_ceiling_reached", next_platform=platform, **governor.summary()
                        )
                        break
                    state = await self._run_platform(platform, state, governor)
                    if state.stopped_early:
                        break

                result = await self._finalize(state, governor, start)
                if root_span is not None:
                    root_span.set_attribute("pipeline.status", result.status)
                    root_span.set_attribute("pipeline.postings", result.postings)
                return result
        finally:
            clear_run_context()

    async def _check_cache(self, cache_key: str, request: SearchRequest) -> CacheEntry | None:
        """Return the cached entry when it may be served, else None."""
        entry = await self._cache.get(cache_key)
        if entry is None:
            logger.debug("cache_miss")
            return None
        if request.force_fresh:
            logger.info("cache_bypassed", reason="force_fresh")
            return None
        if not is_fresh(entry, now_ms()):
            logger.info("cache_stale", age_ms=now_ms() - entry.timestamp)
            return None
        return entry

    async def _run_platform(
        self,
        platform: str,
        state: RunState,
        governor: CostGovernor,
    ) -> RunState:
        """Search one platform and commit its new postings through the cost gate."""
        query = PlatformQuery.build(platform, state.request)
        limits = SearchLimits.from_request(state.request)
        cap = state.request.max_results_per_source
        state.platforms_attempted += 1

        with platform_context(platform):
            async with trace_platform(platform) as span:
                try:
                    raw_results = await self._strategy.search(query, limits)
                except Exception as e:
                    self._record_error(state, platform, e)
                    if span is not None:
                        span.set_attribute("platform.status", "error")
                    return state

                found_at = datetime.now(UTC)
                for raw in raw_results:
                    if state.platform_counts[platform] >= cap:
                        break
                    posting = normalize_result(raw, query, state.request.location, found_at)
                    if posting is None or is_duplicate(state, posting):
                        continue
                    if not governor.can_emit():
                        state.stopped_early = True
                        logger.info("cost_ceiling_reached", **governor.summary())
                        break
                    state = commit_posting(state, posting, governor)

                logger.info(
                    "platform_complete",
                    raw_results=len(raw_results),
                    committed=state.platform_counts[platform],
                )
                if span is not None:
                    span.set_attribute("platform.status", "ok")
                    span.set_attribute("platform.committed", state.platform_counts[platform])
        return state

    async def _finalize(
        self,
        state: RunState,
        governor: CostGovernor,
        start: float,
    ) -> RunResult:
        """Write the cache entry and push results, even when there are none."""
        await self._cache.set(
            state.cache_key,
            CacheEntry(timestamp=now_ms(), results=state.postings),
        )
        await self._sink.push(state.postings)

        duration = time.monotonic() - start
        result = RunResult(
            run_id=state.run_id,
            status="partial" if state.stopped_early else "success",
            cache_key=state.cache_key,
            platforms_attempted=state.platforms_attempted,
            platforms_failed=len(state.failed_platforms),
            postings=len(state.postings),
            estimated_cost_usd=round(state.budget.accumulated, 6),
            stopped_early=state.stopped_early,
            errors=state.errors,
            duration_seconds=duration,
        )
        self._log_summary(result, governor)
        return result

    @staticmethod
    def _record_error(state: RunState, platform: str, error: Exception) -> None:
        """Record a recoverable platform failure; the run continues."""
        state.errors.append(
            PlatformError(
                platform=platform,
                error_type=type(error).__name__,
                error_message=str(error),
            )
        )
        logger.warning(
            "platform_search_failed",
            error_type=type(error).__name__,
            error=str(error),
        )

    @staticmethod
    def _log_summary(result: RunResult, governor: CostGovernor) -> None:
        """Log a structured run summary."""
        logger.info(
            "pipeline_summary",
            status=result.status,
            postings=result.postings,
            platforms_attempted=result.platforms_attempted,
            platforms_failed=result.platforms_failed,
            stopped_early=result.stopped_early,
            duration_seconds=round(result.duration_seconds, 2),
            **governor.summary(),
        )
