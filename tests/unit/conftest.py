"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from ats_search_core.models.request import SearchRequest
from tests.mocks.mock_factories import make_search_request
from tests.mocks.mock_settings import make_settings
from tests.mocks.mock_tools import InMemoryCacheClient, InMemoryDebugStore, InMemorySink


@pytest.fixture
def mock_settings() -> MagicMock:
    """Return a MagicMock Settings with sensible defaults."""
    return make_settings()


@pytest.fixture
def search_request() -> SearchRequest:
    """Return a default SearchRequest."""
    return make_search_request()


@pytest.fixture
def cache_client() -> InMemoryCacheClient:
    """Return an empty in-memory cache client."""
    return InMemoryCacheClient()


@pytest.fixture
def sink() -> InMemorySink:
    """Return an in-memory output sink."""
    return InMemorySink()


@pytest.fixture
def debug_store() -> InMemoryDebugStore:
    """Return an in-memory debug store."""
    return InMemoryDebugStore()


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Save and restore root logger handlers replaced by configure_logging()."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.level = original_level
