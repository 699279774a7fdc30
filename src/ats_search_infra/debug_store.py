"""File-backed debug store for unparseable results pages."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import structlog

logger = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class FileDebugStore:
    """Write each debug blob to ``<directory>/<key>.html``."""

    def __init__(self, directory: Path) -> None:
        """Initialize with the target directory."""
        self._directory = directory

    def path_for(self, key: str) -> Path:
        """File path used for a key."""
        return self._directory / f"{_UNSAFE_CHARS.sub('_', key)}.html"

    async def save(self, key: str, content: str) -> None:
        """Persist content under key, replacing earlier content."""
        path = self.path_for(key)
        await asyncio.to_thread(self._write, path, content)
        logger.info("debug_page_saved", key=key, path=str(path), bytes=len(content))

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
