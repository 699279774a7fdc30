"""Search request models: the run input and its per-platform derivations."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ats_search_core.exceptions import InvalidRequestError


class SearchRequest(BaseModel):
    """Parameters of a single aggregation run. Immutable for the run."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    query: str = Field(min_length=1, description="Search phrase, e.g. a job title")
    location: str = Field(default="Remote", description="Location phrase added to every query")
    posted_within_days: int = Field(
        default=7, ge=0, description="Only results indexed within this many days (0 = any)"
    )
    max_results_per_source: int = Field(
        default=20, ge=1, description="Cap on committed postings per platform"
    )
    force_fresh: bool = Field(default=False, description="Ignore a fresh cache entry")
    country: str = Field(default="US", description="Country code for search localisation")

    @field_validator("query", "location", "country", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        """Trim surrounding whitespace so blank queries fail validation."""
        if isinstance(value, str):
            return value.strip()
        return value

    @classmethod
    def from_input(cls, data: Mapping[str, object]) -> SearchRequest:
        """Build a request from raw input, raising InvalidRequestError on bad input."""
        if not data.get("query"):
            msg = "Missing required input: query"
            raise InvalidRequestError(msg)
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid search request: {e}") from e

    def cache_params(self) -> list[tuple[str, object]]:
        """Cache-relevant parameters in a fixed order."""
        return [
            ("query", self.query),
            ("location", self.location),
            ("postedWithinDays", self.posted_within_days),
            ("country", self.country),
        ]


@dataclass(frozen=True)
class PlatformQuery:
    """Site-restricted query for one ATS platform."""

    platform: str
    text: str

    @classmethod
    def build(cls, platform: str, request: SearchRequest) -> PlatformQuery:
        """Derive the query text for a platform."""
        return cls(
            platform=platform,
            text=f'site:{platform} "{request.query}" "{request.location}"',
        )


@dataclass(frozen=True)
class SearchLimits:
    """Result-count and recency hints passed to a search strategy."""

    max_results: int
    posted_within_days: int
    country: str

    @classmethod
    def from_request(cls, request: SearchRequest) -> SearchLimits:
        """Take limits from the run request."""
        return cls(
            max_results=request.max_results_per_source,
            posted_within_days=request.posted_within_days,
            country=request.country,
        )
