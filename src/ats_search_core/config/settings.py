"""Application settings using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ats_search_core.constants import (
    ATS_PLATFORMS,
    DEFAULT_SEARCH_ACTOR_ID,
    DEFAULT_SEARCH_SERVICE_URL,
)


class Settings(BaseSettings):
    """Central configuration for ats-job-search."""

    model_config = SettingsConfigDict(env_prefix="ATS_", env_file=".env")

    # --- Search acquisition ---
    search_strategy: Literal["direct", "delegated"] = Field(
        default="direct",
        description="'direct' scrapes the results page, 'delegated' calls the search service",
    )
    platforms: list[str] = Field(
        default_factory=lambda: list(ATS_PLATFORMS),
        description="Ordered ATS hosting domains to search",
    )

    # --- Delegated search service ---
    apify_token: SecretStr | None = Field(
        default=None,
        description="API token for the delegated search service",
    )
    search_actor_id: str = Field(
        default=DEFAULT_SEARCH_ACTOR_ID,
        description="Actor that performs the delegated search",
    )
    search_service_url: str = Field(
        default=DEFAULT_SEARCH_SERVICE_URL,
        description="Base URL of the search service REST API",
    )
    search_wait_seconds: int = Field(
        default=300,
        description="Maximum time to wait for a delegated search run to finish",
    )

    # --- Direct scrape ---
    proxy_urls: list[str] = Field(
        default_factory=list,
        description="Proxy pool for direct scraping; one is picked per request",
    )
    scrape_timeout_seconds: int = Field(
        default=30,
        description="Timeout per results-page request in seconds",
    )
    scraper_retry_max: int = Field(
        default=3,
        description="Maximum attempts per results-page request",
    )
    scraper_retry_wait_min: float = Field(
        default=1.0,
        description="Minimum retry wait in seconds",
    )
    scraper_retry_wait_max: float = Field(
        default=10.0,
        description="Maximum retry wait in seconds",
    )
    debug_dir: Path = Field(
        default=Path("./output/debug"),
        description="Where unparseable results pages are stored",
    )

    # --- Cache ---
    cache_backend: Literal["disk", "redis", "db"] = Field(
        default="disk",
        description="Cache backend for aggregated search results",
    )
    cache_dir: Path = Field(
        default=Path("./.cache/ats_search"),
        description="Directory for diskcache persistent cache",
    )
    cache_size_limit_mb: int = Field(
        default=512,
        ge=1,
        description="Size bound for the diskcache directory (cache_backend=disk)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL (cache_backend=redis)",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./ats_search.db",
        description="SQLAlchemy database URL (cache_backend=db or sink_backend=db)",
    )
    cache_ttl_hours: int = Field(
        default=24,
        description="Backend expiry for cache entries; freshness is checked separately",
    )

    # --- Output ---
    sink_backend: Literal["jsonl", "db"] = Field(
        default="jsonl",
        description="Where final job postings are appended",
    )
    output_dir: Path = Field(
        default=Path("./output"),
        description="Directory for output files",
    )
    run_id_prefix: str = Field(
        default="run",
        description="Prefix for auto-generated run IDs",
    )

    # --- Cost Guardrails ---
    max_total_charge_usd: float | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "max_total_charge_usd",
            "ATS_MAX_TOTAL_CHARGE_USD",
            "ACTOR_MAX_TOTAL_CHARGE_USD",
        ),
        description="Cost ceiling for a run (USD); unset disables the governor",
    )
    run_start_cost_usd: float = Field(
        default=0.005,
        description="Estimated fixed cost of starting a run (USD)",
    )
    cost_per_result_usd: float = Field(
        default=0.001,
        description="Estimated cost of emitting one job posting (USD)",
    )

    # --- Observability ---
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="structlog renderer",
    )
    otel_exporter: Literal["none", "console", "otlp"] = Field(
        default="none",
        description="OpenTelemetry span exporter",
    )
    otel_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP collector endpoint",
    )
    otel_service_name: str = Field(
        default="ats-job-search",
        description="Service name attached to spans",
    )

    @model_validator(mode="after")
    def validate_search_config(self) -> Settings:
        """Delegated search needs an API token."""
        if self.search_strategy == "delegated" and not self.apify_token:
            msg = "apify_token required when search_strategy=delegated"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def validate_cost_config(self) -> Settings:
        """Cost settings must be non-negative."""
        if self.run_start_cost_usd < 0 or self.cost_per_result_usd < 0:
            msg = "cost settings must be non-negative"
            raise ValueError(msg)
        if self.max_total_charge_usd is not None and self.max_total_charge_usd < 0:
            msg = "max_total_charge_usd must be non-negative"
            raise ValueError(msg)
        return self
