"""Database-backed implementation of CacheClient using a key/value table."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sqlalchemy import String, Text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from ats_search_infra.db.models import Base


class CacheRow(Base):
    """Simple key/value cache table with optional expiry."""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)


def _is_expired(expires_at: datetime) -> bool:
    """Check expiry, handling both naive and aware datetimes."""
    now = datetime.now(UTC)
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at < now


class DBCacheClient:
    """Cache implementation backed by the application's database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize with an async SQLAlchemy session factory."""
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        """Retrieve a value by key, or None if missing/expired."""
        async with self._session_factory() as session:
            row = await session.get(CacheRow, key)
            if row is None:
                return None
            if row.expires_at and _is_expired(row.expires_at):
                return None
            return row.value

    async def set(self, key: str, value: str, ttl_seconds: int = 86400) -> None:
        """Store a value with TTL, replacing any previous value for the key."""
        expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
        async with self._session_factory() as session:
            await session.merge(CacheRow(key=key, value=value, expires_at=expires_at))
            await session.commit()
