"""Observability: structured logging, tracing, and cost governance."""

from ats_search_agents.observability.cost_tracker import (
    CostGovernor,
    budget_from_settings,
)
from ats_search_agents.observability.logging import (
    bind_run_context,
    clear_run_context,
    configure_logging,
    platform_context,
)
from ats_search_agents.observability.tracing import (
    configure_tracing,
    disable_tracing,
    trace_pipeline_run,
    trace_platform,
)

__all__ = [
    "CostGovernor",
    "bind_run_context",
    "budget_from_settings",
    "clear_run_context",
    "configure_logging",
    "configure_tracing",
    "disable_tracing",
    "platform_context",
    "trace_pipeline_run",
    "trace_platform",
]
