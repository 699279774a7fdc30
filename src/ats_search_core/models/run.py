"""Run error and result models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


def new_run_id(prefix: str = "run") -> str:
    """Generate a timestamped run identifier."""
    return f"{prefix}_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S')}"


class PlatformError(BaseModel):
    """Record of a recoverable failure while searching one platform."""

    platform: str = Field(description="Platform that failed")
    error_type: str = Field(description="Exception class name")
    error_message: str = Field(description="Error description")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the error occurred"
    )


class RunResult(BaseModel):
    """Summary of a completed aggregation run."""

    run_id: str = Field(description="Run identifier")
    status: Literal["success", "partial", "cached"] = Field(description="Overall run status")
    cache_key: str = Field(description="Cache key of the request")
    cache_hit: bool = Field(default=False, description="Whether results came from cache")
    platforms_attempted: int = Field(default=0, description="Platforms searched")
    platforms_failed: int = Field(default=0, description="Platforms skipped after an error")
    postings: int = Field(default=0, description="Postings emitted to the output sink")
    estimated_cost_usd: float = Field(default=0.0, description="Estimated run cost in USD")
    stopped_early: bool = Field(
        default=False, description="Whether the cost ceiling ended collection"
    )
    errors: list[PlatformError] = Field(default_factory=list, description="Per-platform errors")
    duration_seconds: float = Field(default=0.0, description="Total run duration in seconds")
    completed_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the run completed"
    )
