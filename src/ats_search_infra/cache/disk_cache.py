"""diskcache-backed CacheClient for single-host runs."""

from __future__ import annotations

import asyncio
from pathlib import Path

import diskcache

# Search entries are written once per run and read by later runs;
# evict the oldest writes first when the size limit is reached.
_EVICTION_POLICY = "least-recently-stored"


class DiskCacheClient:
    """Cache entries stored as text in a local diskcache directory."""

    def __init__(self, cache_dir: Path, size_limit_mb: int = 512) -> None:
        cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(
            str(cache_dir),
            size_limit=size_limit_mb * 1024 * 1024,
            eviction_policy=_EVICTION_POLICY,
        )

    async def get(self, key: str) -> str | None:
        """Return the stored text, or None when absent or expired."""
        value = await asyncio.to_thread(self._cache.get, key, None)
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    async def set(self, key: str, value: str, ttl_seconds: int = 86400) -> None:
        """Store text under key; diskcache drops it after ttl_seconds."""
        await asyncio.to_thread(self._cache.set, key, value, expire=ttl_seconds)

    async def close(self) -> None:
        await asyncio.to_thread(self._cache.close)
