"""Aggregated search result cache with a freshness window."""

from __future__ import annotations

import time

import structlog
from pydantic import ValidationError

from ats_search_core.constants import CACHE_FRESHNESS_MS
from ats_search_core.interfaces.cache import CacheClient
from ats_search_core.models.job import CacheEntry

logger = structlog.get_logger()


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_fresh(entry: CacheEntry, current_ms: int, force_fresh: bool = False) -> bool:
    """An entry is usable only inside the freshness window and without force_fresh."""
    if force_fresh:
        return False
    return current_ms - entry.timestamp < CACHE_FRESHNESS_MS


class SearchResultCache:
    """Read-through / write-through store of CacheEntry blobs keyed by query hash."""

    def __init__(self, cache: CacheClient, ttl_hours: int = 24) -> None:
        """Initialize with a CacheClient implementation."""
        self._cache = cache
        self._ttl_seconds = ttl_hours * 3600

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve the cached entry for a key; corrupt blobs count as a miss."""
        raw = await self._cache.get(key)
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("cache_entry_invalid", key=key, error=str(e))
            return None

    async def set(self, key: str, entry: CacheEntry) -> None:
        """Write an entry; the backend TTL only bounds storage, not freshness."""
        payload = entry.model_dump_json(by_alias=True)
        await self._cache.set(key, payload, ttl_seconds=self._ttl_seconds)
