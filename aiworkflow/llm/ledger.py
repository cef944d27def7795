"""Usage and budget ledger shared by the routers.

Keeps per-provider running totals (tokens, cost, request count) and
enforces a monthly spending ceiling against their sum.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from aiworkflow.llm.errors import BudgetExceededError
from aiworkflow.llm.types import (
    BudgetStatus,
    GenerationResult,
    ProviderUsageStats,
    UsageStats,
)

logger = logging.getLogger(__name__)


class UsageLedger:
    """Per-provider usage totals.

    Totals only grow, except through ``reset``, which zeroes every
    provider and stamps ``last_reset``.
    """

    def __init__(self, providers: Iterable[str] = ()):
        self._stats: dict[str, ProviderUsageStats] = {}
        for name in providers:
            self.ensure(name)

    def ensure(self, provider: str) -> None:
        """Add a zeroed entry for a provider if it has none."""
        if provider not in self._stats:
            self._stats[provider] = ProviderUsageStats()

    def remove(self, provider: str) -> None:
        self._stats.pop(provider, None)

    def record(self, result: GenerationResult) -> None:
        """Add a successful call's tokens and cost to its provider's totals.

        Results from providers without an entry are ignored.
        """
        stats = self._stats.get(result.provider)
        if stats is None:
            logger.debug("No ledger entry for provider %s, not recording", result.provider)
            return

        stats.total_tokens += result.usage.total_tokens
        stats.total_cost += result.cost
        stats.request_count += 1

    def total_cost(self) -> float:
        """Summed cost across every provider."""
        return sum(stats.total_cost for stats in self._stats.values())

    def cost_for(self, provider: str) -> float:
        stats = self._stats.get(provider)
        return stats.total_cost if stats else 0.0

    def check_budget(self, monthly_budget: float) -> None:
        """Refuse further paid calls once spend has reached the budget.

        Raises:
            BudgetExceededError: If summed cost >= monthly_budget
        """
        used = self.total_cost()
        if used >= monthly_budget:
            logger.warning(
                "Monthly budget exhausted: used $%.4f of $%s", used, monthly_budget
            )
            raise BudgetExceededError(used=used, budget=monthly_budget)

    def budget_status(self, monthly_budget: float) -> BudgetStatus:
        used = self.total_cost()
        percentage = (used / monthly_budget * 100) if monthly_budget > 0 else 0.0
        return BudgetStatus(
            used=used,
            remaining=max(0.0, monthly_budget - used),
            percentage=percentage,
        )

    def snapshot(self) -> UsageStats:
        """Deep copy of the current totals."""
        return {name: stats.model_copy(deep=True) for name, stats in self._stats.items()}

    def reset(self) -> None:
        now = datetime.utcnow()
        for name in self._stats:
            self._stats[name] = ProviderUsageStats(last_reset=now)
        logger.info("Usage ledger reset for %d providers", len(self._stats))

    def __contains__(self, provider: str) -> bool:
        return provider in self._stats

    def __len__(self) -> int:
        return len(self._stats)
