"""Direct scrape strategy: fetch the results page and extract links from HTML."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ats_search_agents.tools.selectors import SELECTOR_CHAIN, ResultSelector, run_selector_chain
from ats_search_agents.tools.url_utils import is_relative, unwrap_redirect
from ats_search_core.constants import ACCEPT_LANGUAGES, SEARCH_ENGINE_URL, USER_AGENTS
from ats_search_core.exceptions import ScrapingError
from ats_search_core.interfaces.sink import DebugStore
from ats_search_core.models.job import RawSearchResult
from ats_search_core.models.request import PlatformQuery, SearchLimits

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ats_search_core.config.settings import Settings

logger = structlog.get_logger()

_MAX_RESULTS_PER_PAGE = 100


def random_headers() -> dict[str, str]:
    """Randomized client identity to reduce blocking."""
    return {
        "User-Agent": random.choice(USER_AGENTS),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": random.choice(ACCEPT_LANGUAGES),
    }


def build_search_params(query: PlatformQuery, limits: SearchLimits) -> dict[str, str]:
    """Query-string parameters for the results page."""
    params = {
        "q": query.text,
        "num": str(min(limits.max_results, _MAX_RESULTS_PER_PAGE)),
        "hl": "en",
    }
    if limits.country:
        params["gl"] = limits.country.lower()
    if limits.posted_within_days > 0:
        params["tbs"] = f"qdr:d{limits.posted_within_days}"
    return params


def accept_candidates(candidates: list[RawSearchResult]) -> list[RawSearchResult]:
    """Keep titled, absolute results, unwrapping redirect-wrapper links."""
    accepted: list[RawSearchResult] = []
    for candidate in candidates:
        title = candidate.title.strip()
        if not title or not candidate.url:
            continue
        url = unwrap_redirect(candidate.url)
        if not url or is_relative(url):
            continue
        accepted.append(RawSearchResult(title=title, url=url))
    return accepted


class DirectScrapeStrategy:
    """Search by fetching the engine's results page through a proxy."""

    def __init__(
        self,
        settings: Settings,
        debug_store: DebugStore,
        chain: Sequence[ResultSelector] = SELECTOR_CHAIN,
    ) -> None:
        """Initialize with settings, a debug store, and the selector chain."""
        self.settings = settings
        self._debug_store = debug_store
        self._chain = chain

    async def search(self, query: PlatformQuery, limits: SearchLimits) -> list[RawSearchResult]:
        """Fetch and parse the results page for one platform query."""
        html = await self.fetch_results_page(query, limits)

        selector_name, candidates = run_selector_chain(html, self._chain)
        if selector_name is None:
            logger.warning("no_selector_matched", platform=query.platform, bytes=len(html))
            await self._debug_store.save(f"debug_{query.platform}", html)
            return []

        results = accept_candidates(candidates)
        logger.info(
            "results_page_parsed",
            platform=query.platform,
            selector=selector_name,
            candidates=len(candidates),
            accepted=len(results),
        )
        return results

    async def fetch_results_page(self, query: PlatformQuery, limits: SearchLimits) -> str:
        """GET the results page, retrying transport and HTTP status errors."""
        params = build_search_params(query, limits)

        @retry(
            stop=stop_after_attempt(self.settings.scraper_retry_max),
            wait=wait_exponential(
                multiplier=1,
                min=self.settings.scraper_retry_wait_min,
                max=self.settings.scraper_retry_wait_max,
            ),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        )
        async def _do_fetch() -> str:
            async with httpx.AsyncClient(
                proxy=self._pick_proxy(),
                timeout=float(self.settings.scrape_timeout_seconds),
                follow_redirects=True,
            ) as client:
                response = await client.get(
                    SEARCH_ENGINE_URL, params=params, headers=random_headers()
                )
                response.raise_for_status()
                return response.text

        try:
            return await _do_fetch()
        except httpx.HTTPError as e:
            msg = f"Results page fetch failed for {query.platform}: {e}"
            raise ScrapingError(msg) from e

    def _pick_proxy(self) -> str | None:
        """Pick a proxy from the pool; None means direct egress."""
        proxies = self.settings.proxy_urls
        if not proxies:
            return None
        return random.choice(list(proxies))
