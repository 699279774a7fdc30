"""Abstract cache interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CacheClient(Protocol):
    """Abstract key/value cache; implementations can be swapped."""

    async def get(self, key: str) -> str | None:
        """Retrieve a value by key, or None if not found."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int = 86400) -> None:
        """Store a value with optional TTL."""
        ...
