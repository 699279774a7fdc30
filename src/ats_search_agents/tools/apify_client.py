"""Search service client for the Apify REST API."""

from __future__ import annotations

import time

import httpx
import structlog

from ats_search_core.constants import SEARCH_SERVICE_TERMINAL_STATUSES
from ats_search_core.interfaces.search import SearchServiceRun

logger = structlog.get_logger()

# Upper bound the API accepts for a single waitForFinish call
_MAX_WAIT_PER_REQUEST = 60


class ApifySearchClient:
    """Start an actor run, wait for it to finish, and read its dataset."""

    def __init__(
        self,
        token: str,
        actor_id: str,
        base_url: str,
        wait_seconds: int = 300,
        timeout: float = 90.0,
    ) -> None:
        """Initialize with an API token and the actor to run."""
        self._token = token
        self._actor_id = actor_id
        self._base_url = base_url.rstrip("/")
        self._wait_seconds = wait_seconds
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def call(self, run_input: dict[str, object]) -> SearchServiceRun:
        """Start a run and poll it until it reaches a terminal status."""
        deadline = time.monotonic() + self._wait_seconds
        async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers()) as client:
            response = await client.post(
                f"{self._base_url}/acts/{self._actor_id}/runs",
                params={"waitForFinish": _MAX_WAIT_PER_REQUEST},
                json=run_input,
            )
            response.raise_for_status()
            run = response.json()["data"]

            while run["status"] not in SEARCH_SERVICE_TERMINAL_STATUSES:
                if time.monotonic() >= deadline:
                    logger.warning("search_run_wait_exceeded", run_id=run["id"])
                    break
                response = await client.get(
                    f"{self._base_url}/actor-runs/{run['id']}",
                    params={"waitForFinish": _MAX_WAIT_PER_REQUEST},
                )
                response.raise_for_status()
                run = response.json()["data"]

        logger.debug("search_run_finished", run_id=run.get("id"), status=run["status"])
        return SearchServiceRun(
            status=str(run["status"]),
            result_store_id=run.get("defaultDatasetId"),
        )

    async def read_rows(self, result_store_id: str) -> list[dict[str, object]]:
        """Read all items of a dataset."""
        async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers()) as client:
            response = await client.get(
                f"{self._base_url}/datasets/{result_store_id}/items",
                params={"format": "json", "clean": "true"},
            )
            response.raise_for_status()
            rows = response.json()
        if not isinstance(rows, list):
            return []
        return [row for row in rows if isinstance(row, dict)]
