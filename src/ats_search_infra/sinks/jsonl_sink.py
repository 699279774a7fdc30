"""JSON Lines output sink."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import structlog

from ats_search_core.models.job import JobPosting

logger = structlog.get_logger()


class JsonlOutputSink:
    """Append postings as one JSON object per line."""

    def __init__(self, path: Path) -> None:
        """Initialize with the dataset file path."""
        self._path = path

    async def push(self, postings: list[JobPosting]) -> None:
        """Append postings; the file is created even when there are none."""
        lines = [json.dumps(p.to_record(), ensure_ascii=False) for p in postings]
        await asyncio.to_thread(self._append, lines)
        logger.info("dataset_written", path=str(self._path), rows=len(lines))

    def _append(self, lines: list[str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
