"""Factory functions for creating collaborators from settings."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ats_search_core.exceptions import ConfigurationError
from ats_search_core.interfaces.cache import CacheClient
from ats_search_core.interfaces.search import SearchStrategy
from ats_search_core.interfaces.sink import DebugStore, OutputSink

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from ats_search_core.config.settings import Settings


def create_debug_store(settings: Settings) -> DebugStore:
    """Create the file-backed debug store."""
    from ats_search_infra.debug_store import FileDebugStore

    return FileDebugStore(settings.debug_dir)


def create_search_strategy(settings: Settings, debug_store: DebugStore) -> SearchStrategy:
    """Create the search strategy selected by ``settings.search_strategy``.

    Returns ``DelegatedSearchStrategy`` backed by the Apify API for
    ``"delegated"``, otherwise ``DirectScrapeStrategy``.
    """
    if settings.search_strategy == "delegated":
        if settings.apify_token is None:
            msg = "apify_token required when search_strategy=delegated"
            raise ConfigurationError(msg)

        from ats_search_agents.tools.apify_client import ApifySearchClient
        from ats_search_agents.tools.delegated_search import DelegatedSearchStrategy

        client = ApifySearchClient(
            token=settings.apify_token.get_secret_value(),
            actor_id=settings.search_actor_id,
            base_url=settings.search_service_url,
            wait_seconds=settings.search_wait_seconds,
        )
        return DelegatedSearchStrategy(client)

    from ats_search_agents.tools.direct_scrape import DirectScrapeStrategy

    return DirectScrapeStrategy(settings, debug_store)


@dataclass
class Collaborators:
    """External collaborators of one run plus their cleanup hooks."""

    strategy: SearchStrategy
    cache: CacheClient
    sink: OutputSink
    closers: list[Callable[[], Awaitable[None]]] = field(default_factory=list)

    async def aclose(self) -> None:
        """Release connections and file handles."""
        for close in reversed(self.closers):
            await close()


async def create_collaborators(settings: Settings) -> Collaborators:
    """Build strategy, cache client, and output sink from settings."""
    closers: list[Callable[[], Awaitable[None]]] = []
    engine: AsyncEngine | None = None

    async def _engine() -> AsyncEngine:
        nonlocal engine
        if engine is None:
            from ats_search_infra.db.engine import create_engine
            from ats_search_infra.db.session import init_db

            engine = create_engine(settings.database_url)
            await init_db(engine)
            closers.append(engine.dispose)
        return engine

    cache: CacheClient
    if settings.cache_backend == "redis":
        from ats_search_infra.cache.redis_cache import RedisCacheClient

        redis_cache = RedisCacheClient.from_url(settings.redis_url)
        closers.append(redis_cache.close)
        cache = redis_cache
    elif settings.cache_backend == "db":
        from ats_search_infra.cache.db_cache import DBCacheClient
        from ats_search_infra.db.session import create_session_factory

        cache = DBCacheClient(create_session_factory(await _engine()))
    else:
        from ats_search_infra.cache.disk_cache import DiskCacheClient

        disk_cache = DiskCacheClient(settings.cache_dir, settings.cache_size_limit_mb)
        closers.append(disk_cache.close)
        cache = disk_cache

    sink: OutputSink
    if settings.sink_backend == "db":
        from ats_search_infra.db.session import create_session_factory
        from ats_search_infra.sinks.db_sink import DBOutputSink

        sink = DBOutputSink(create_session_factory(await _engine()))
    else:
        from ats_search_infra.sinks.jsonl_sink import JsonlOutputSink

        sink = JsonlOutputSink(settings.output_dir / "dataset.jsonl")

    strategy = create_search_strategy(settings, create_debug_store(settings))
    return Collaborators(strategy=strategy, cache=cache, sink=sink, closers=closers)
