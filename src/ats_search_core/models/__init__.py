"""Domain models for ats-job-search."""

from ats_search_core.models.job import CacheEntry, JobPosting, RawSearchResult
from ats_search_core.models.request import PlatformQuery, SearchLimits, SearchRequest
from ats_search_core.models.run import PlatformError, RunResult, new_run_id

__all__ = [
    "CacheEntry",
    "JobPosting",
    "PlatformError",
    "PlatformQuery",
    "RawSearchResult",
    "RunResult",
    "SearchLimits",
    "SearchRequest",
    "new_run_id",
]
