"""Database output sink."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ats_search_core.models.job import JobPosting
from ats_search_infra.db.models import JobPostingModel

logger = structlog.get_logger()


def _to_row(posting: JobPosting) -> JobPostingModel:
    return JobPostingModel(
        title=posting.title,
        company=posting.company,
        location=posting.location,
        apply_url=posting.apply_url,
        platform=posting.platform,
        job_id=posting.job_id,
        found_at=posting.found_at.replace(tzinfo=None),
        search_query=posting.search_query,
    )


class DBOutputSink:
    """Insert postings into the job_postings table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize with an async session factory."""
        self._session_factory = session_factory

    async def push(self, postings: list[JobPosting]) -> None:
        """Insert all postings in one transaction."""
        async with self._session_factory() as session:
            session.add_all([_to_row(p) for p in postings])
            await session.commit()
        logger.info("dataset_written", table=JobPostingModel.__tablename__, rows=len(postings))
