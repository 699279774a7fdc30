"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from pathlib import Path

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console

from ats_search_agents.observability import configure_logging, configure_tracing
from ats_search_agents.orchestrator.pipeline import AggregationPipeline
from ats_search_agents.tools.factories import create_collaborators
from ats_search_core.config.settings import Settings
from ats_search_core.exceptions import ConfigurationError, InvalidRequestError
from ats_search_core.models.request import SearchRequest
from ats_search_core.models.run import RunResult
from ats_search_infra.cache.search_cache import SearchResultCache

app = typer.Typer(
    name="ats-search",
    help="Aggregate job postings from ATS hosting platforms via site-restricted search",
)
console = Console()
logger = structlog.get_logger()


class StrategyChoice(str, Enum):
    """Values accepted by --strategy."""

    direct = "direct"
    delegated = "delegated"


@app.command()
def search(
    query: str = typer.Option("", "--query", "-q", help="Search phrase, e.g. a job title"),
    location: str | None = typer.Option(None, "--location", help="Location phrase"),
    posted_within_days: int | None = typer.Option(
        None, "--posted-within-days", help="Only results from the last N days (0 = any)"
    ),
    max_results: int | None = typer.Option(
        None, "--max-results", help="Maximum postings per platform"
    ),
    force_fresh: bool = typer.Option(False, "--force-fresh", help="Ignore cached results"),
    country: str | None = typer.Option(None, "--country", help="Country code, e.g. US"),
    input_file: Path | None = typer.Option(
        None, "--input", help="JSON file with search parameters", exists=True
    ),
    strategy: StrategyChoice | None = typer.Option(
        None, "--strategy", help="Search strategy", case_sensitive=False
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Search every ATS platform and write the aggregated postings."""
    params: dict[str, object] = {}
    if input_file is not None:
        params.update(json.loads(input_file.read_text()))

    overrides: dict[str, object | None] = {
        "query": query or None,
        "location": location,
        "postedWithinDays": posted_within_days,
        "maxResultsPerSource": max_results,
        "country": country,
    }
    params.update({k: v for k, v in overrides.items() if v is not None})
    if force_fresh:
        params["forceFresh"] = True

    try:
        request = SearchRequest.from_input(params)
    except InvalidRequestError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=1) from e

    settings_overrides: dict[str, object] = {}
    if strategy is not None:
        settings_overrides["search_strategy"] = strategy.value
    if verbose:
        settings_overrides["log_level"] = "DEBUG"

    try:
        settings = Settings(**settings_overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        reasons = "; ".join(str(err["msg"]) for err in e.errors())
        console.print(f"[red]Configuration error:[/red] {reasons}", style="bold")
        raise typer.Exit(code=1) from e

    configure_logging(settings)
    configure_tracing(settings)

    console.print(f"[bold green]Searching:[/bold green] {request.query} ({request.location})")

    try:
        result = asyncio.run(_run_search(settings, request))
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=1) from e

    console.print(f"\n[bold]Run complete:[/bold] {result.status}")
    console.print(f"  Postings: {result.postings}")
    if result.cache_hit:
        console.print("  [dim]Served from cache[/dim]")
    else:
        console.print(
            f"  Platforms: {result.platforms_attempted} searched, "
            f"{result.platforms_failed} failed"
        )
        console.print(f"  Cost: ${result.estimated_cost_usd:.4f}")
    console.print(f"  Duration: {result.duration_seconds:.1f}s")

    if result.stopped_early:
        console.print("\n[yellow]Stopped early: cost ceiling reached[/yellow]")

    if result.errors:
        console.print(f"\n[yellow]Skipped platforms: {result.platforms_failed}[/yellow]")
        for error in result.errors:
            console.print(f"  {error.platform}: {error.error_type}")


@app.command()
def version() -> None:
    """Show version."""
    console.print("ats-job-search v0.1.0")


async def _run_search(settings: Settings, request: SearchRequest) -> RunResult:
    """Build collaborators, run the pipeline, and release resources."""
    collaborators = await create_collaborators(settings)
    try:
        pipeline = AggregationPipeline(
            settings,
            strategy=collaborators.strategy,
            cache=SearchResultCache(collaborators.cache, ttl_hours=settings.cache_ttl_hours),
            sink=collaborators.sink,
        )
        return await pipeline.run(request)
    finally:
        await collaborators.aclose()


if __name__ == "__main__":
    app()
