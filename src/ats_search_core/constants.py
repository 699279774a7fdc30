"""Shared constants for ats-job-search."""

from __future__ import annotations

# ATS hosting domains, searched in this order
ATS_PLATFORMS: tuple[str, ...] = (
    "greenhouse.io",
    "lever.co",
    "ashbyhq.com",
    "workable.com",
    "smartrecruiters.com",
    "jobvite.com",
    "myworkdayjobs.com",
    "bamboohr.com",
    "breezy.hr",
    "recruitee.com",
    "teamtailor.com",
)

# Cached results are served only within this window (milliseconds)
CACHE_FRESHNESS_MS = 3 * 60 * 60 * 1000

CACHE_KEY_PREFIX = "search"

UNKNOWN_COMPANY = "Unknown"

# Search engine used by the direct scrape strategy
SEARCH_ENGINE_URL = "https://www.google.com/search"
SEARCH_ENGINE_DOMAIN_MARKER = "google."
REDIRECT_WRAPPER_PATH = "/url"

# Delegated search service
DEFAULT_SEARCH_ACTOR_ID = "apify~google-search-scraper"
DEFAULT_SEARCH_SERVICE_URL = "https://api.apify.com/v2"
SEARCH_SERVICE_SUCCEEDED = "SUCCEEDED"
SEARCH_SERVICE_TERMINAL_STATUSES = frozenset({"SUCCEEDED", "FAILED", "ABORTED", "TIMED-OUT"})

# Rotated per direct-scrape request
USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.4; rv:125.0) Gecko/20100101 Firefox/125.0",
)

ACCEPT_LANGUAGES: tuple[str, ...] = (
    "en-US,en;q=0.9",
    "en-GB,en;q=0.8",
    "en-US,en;q=0.8,de;q=0.5",
)
