"""Run state: the single mutable value passed through the pipeline stages."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from ats_search_core.models.job import JobPosting
from ats_search_core.models.request import SearchRequest
from ats_search_core.models.run import PlatformError


@dataclass
class CostBudget:
    """Estimated monetary cost of a run. ``ceiling=None`` disables enforcement."""

    start_cost: float
    per_result_cost: float
    ceiling: float | None = None
    accumulated: float = field(init=False)

    def __post_init__(self) -> None:
        self.accumulated = self.start_cost


@dataclass
class RunState:
    """Run-scoped state: dedup set, cost budget, and accumulated postings."""

    run_id: str
    request: SearchRequest
    budget: CostBudget
    cache_key: str

    seen_urls: set[str] = field(default_factory=set)
    postings: list[JobPosting] = field(default_factory=list)
    platform_counts: Counter[str] = field(default_factory=Counter)
    errors: list[PlatformError] = field(default_factory=list)
    platforms_attempted: int = 0
    stopped_early: bool = False

    @property
    def failed_platforms(self) -> list[str]:
        """Platforms that were skipped after a recoverable error."""
        return list(dict.fromkeys(e.platform for e in self.errors))
