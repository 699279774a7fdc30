"""Job listing models: raw search results and normalized postings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


@dataclass
class RawSearchResult:
    """A (title, url) pair as surfaced by a search strategy, pre-normalization."""

    title: str
    url: str | None


class JobPosting(BaseModel):
    """Structured job posting found on an ATS platform."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    title: str = Field(description="Posting title as shown by the search engine")
    company: str = Field(description="Company inferred from the URL")
    location: str = Field(description="Location phrase of the search")
    apply_url: str = Field(description="Canonical posting URL (no query or fragment)")
    platform: str = Field(description="ATS hosting domain the posting was found on")
    job_id: str | None = Field(default=None, description="Last path segment of apply_url")
    found_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When this posting was found"
    )
    search_query: str = Field(description="Platform query that surfaced this posting")

    def to_record(self) -> dict[str, object]:
        """Serialize with camelCase keys for the cache and output sinks."""
        return self.model_dump(mode="json", by_alias=True)


class CacheEntry(BaseModel):
    """Aggregated results of a run, stored per query key."""

    timestamp: int = Field(description="Epoch milliseconds of the generating run")
    results: list[JobPosting] = Field(default_factory=list, description="Run results")
