"""Custom exception hierarchy for ats-job-search."""

from __future__ import annotations


class JobSearchError(Exception):
    """Base exception for all ats-job-search errors."""


class InvalidRequestError(JobSearchError):
    """Raised when the search request is missing required parameters."""


class ConfigurationError(JobSearchError):
    """Raised when settings are inconsistent (e.g. missing API token)."""


class SearchAcquisitionError(JobSearchError):
    """Raised when a platform search fails; recoverable per platform."""


class ScrapingError(SearchAcquisitionError):
    """Raised when the results page cannot be fetched after all retries."""


class SearchServiceError(SearchAcquisitionError):
    """Raised when the delegated search service does not succeed."""

    def __init__(self, message: str, status: str | None = None) -> None:
        """Keep the terminal status reported by the service."""
        super().__init__(message)
        self.status = status
