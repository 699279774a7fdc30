"""Abstract output and debug store interfaces."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ats_search_core.models.job import JobPosting


@runtime_checkable
class OutputSink(Protocol):
    """Append-only destination for the final postings of a run."""

    async def push(self, postings: list[JobPosting]) -> None:
        """Append postings (possibly none) to the store."""
        ...


@runtime_checkable
class DebugStore(Protocol):
    """Write-only side channel for pages the extractor could not parse."""

    async def save(self, key: str, content: str) -> None:
        """Persist content under key, replacing any earlier value."""
        ...
