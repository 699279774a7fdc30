"""Run cost estimation and the cost ceiling gate."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ats_search_core.state import CostBudget

if TYPE_CHECKING:
    from ats_search_core.config.settings import Settings

logger = structlog.get_logger()

# Absorbs float drift when the ceiling is an exact multiple of the unit cost
_EPSILON = 1e-9


def budget_from_settings(settings: Settings) -> CostBudget:
    """Create a fresh run budget from cost settings."""
    return CostBudget(
        start_cost=settings.run_start_cost_usd,
        per_result_cost=settings.cost_per_result_usd,
        ceiling=settings.max_total_charge_usd,
    )


class CostGovernor:
    """Decides whether one more result may be emitted under the cost ceiling."""

    def __init__(self, budget: CostBudget) -> None:
        """Wrap the run's budget; the budget is mutated on commit."""
        self.budget = budget

    @staticmethod
    def estimate(current: float, next_unit_cost: float) -> float:
        """Projected cost after one more unit of work."""
        return current + next_unit_cost

    def can_emit(self) -> bool:
        """True when no ceiling is set or one more result stays within it."""
        if self.budget.ceiling is None:
            return True
        projected = self.estimate(self.budget.accumulated, self.budget.per_result_cost)
        return projected <= self.budget.ceiling + _EPSILON

    def commit(self) -> float:
        """Account for one emitted result and return the new total."""
        self.budget.accumulated = self.estimate(
            self.budget.accumulated, self.budget.per_result_cost
        )
        return self.budget.accumulated

    def summary(self) -> dict[str, object]:
        """Return a cost summary for structured logging."""
        return {
            "start_cost_usd": self.budget.start_cost,
            "per_result_cost_usd": self.budget.per_result_cost,
            "ceiling_usd": self.budget.ceiling,
            "accumulated_usd": round(self.budget.accumulated, 6),
        }
