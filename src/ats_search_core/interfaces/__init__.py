"""Public interface re-exports for ats_search_core."""

from ats_search_core.interfaces.cache import CacheClient
from ats_search_core.interfaces.search import (
    SearchServiceClient,
    SearchServiceRun,
    SearchStrategy,
)
from ats_search_core.interfaces.sink import DebugStore, OutputSink

__all__ = [
    "CacheClient",
    "DebugStore",
    "OutputSink",
    "SearchServiceClient",
    "SearchServiceRun",
    "SearchStrategy",
]
