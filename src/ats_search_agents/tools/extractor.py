"""Turn raw search results into normalized job postings."""

from __future__ import annotations

from datetime import UTC, datetime
from urllib.parse import urlsplit

import structlog

from ats_search_agents.tools.company_rules import infer_company
from ats_search_agents.tools.url_utils import canonicalize_url, last_path_segment
from ats_search_core.constants import SEARCH_ENGINE_DOMAIN_MARKER
from ats_search_core.models.job import JobPosting, RawSearchResult
from ats_search_core.models.request import PlatformQuery

logger = structlog.get_logger()


def is_search_engine_url(url: str) -> bool:
    """Check if a URL points back at the search engine (navigation, ads, etc.)."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        host = ""
    if host:
        return SEARCH_ENGINE_DOMAIN_MARKER in host
    return f"www.{SEARCH_ENGINE_DOMAIN_MARKER}" in url.lower()


def normalize_result(
    raw: RawSearchResult,
    query: PlatformQuery,
    location: str,
    found_at: datetime | None = None,
) -> JobPosting | None:
    """Build a JobPosting from a raw result, or None if it is not a platform posting."""
    if not raw.url:
        return None

    apply_url = canonicalize_url(raw.url)
    if is_search_engine_url(apply_url) or query.platform not in apply_url.lower():
        logger.debug("result_rejected", url=apply_url, platform=query.platform)
        return None

    return JobPosting(
        title=raw.title.strip(),
        company=infer_company(apply_url, query.platform),
        location=location,
        apply_url=apply_url,
        platform=query.platform,
        job_id=last_path_segment(apply_url),
        found_at=found_at or datetime.now(UTC),
        search_query=query.text,
    )
