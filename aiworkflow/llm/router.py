"""Task-based provider router.

Routes generation requests across interchangeable provider adapters:
- Selects a provider from a fixed task-type preference table
- Fails over to the remaining providers on retryable errors
- Tracks usage per provider and enforces a monthly budget
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from aiworkflow.llm.adapters.base import ProviderAdapter
from aiworkflow.llm.config import RouterConfig
from aiworkflow.llm.errors import NoProviderAvailableError, is_retryable
from aiworkflow.llm.ledger import UsageLedger
from aiworkflow.llm.types import (
    BudgetStatus,
    GenerationOptions,
    GenerationResult,
    TaskType,
    UsageStats,
)

logger = logging.getLogger(__name__)

ANTHROPIC = "anthropic"
OPENAI = "openai"

# Preferred provider per task type. Outline is decided by cost.
PREFERRED_PROVIDERS: dict[TaskType, str] = {
    TaskType.RESEARCH: ANTHROPIC,
    TaskType.ANALYSIS: ANTHROPIC,
    TaskType.WRITING: OPENAI,
    TaskType.REVIEW: OPENAI,
}


class BaseRouter:
    """Provider registry, usage ledger and failover shared by all routers.

    Subclasses decide which provider takes a request and which providers
    may stand in when it fails.
    """

    def __init__(self, providers: Iterable[ProviderAdapter] = ()):
        self._providers: list[ProviderAdapter] = []
        self._ledger = UsageLedger()
        for provider in providers:
            self._register(provider)

    @property
    def monthly_budget(self) -> float | None:
        return None

    @property
    def ledger(self) -> UsageLedger:
        return self._ledger

    @property
    def providers(self) -> list[ProviderAdapter]:
        return list(self._providers)

    def get_provider(self, name: str) -> ProviderAdapter | None:
        for provider in self._providers:
            if provider.name == name:
                return provider
        return None

    def add_provider(self, provider: ProviderAdapter) -> None:
        """Register a provider; one with the same name is replaced."""
        self._register(provider)
        logger.info("Registered provider %s (%s)", provider.name, provider.get_model_name())

    def remove_provider(self, name: str) -> None:
        """Unregister a provider and drop its usage entry."""
        self._providers = [p for p in self._providers if p.name != name]
        self._ledger.remove(name)
        logger.info("Removed provider %s", name)

    def get_available_providers(self) -> list[str]:
        return [p.name for p in self._providers if p.is_available()]

    def get_usage_stats(self) -> UsageStats:
        """Per-provider usage totals (a deep copy)."""
        return self._ledger.snapshot()

    def get_budget_status(self) -> BudgetStatus | None:
        """Spend against the monthly budget, or None when ungated."""
        if self.monthly_budget is None:
            return None
        return self._ledger.budget_status(self.monthly_budget)

    def reset_usage_stats(self) -> None:
        self._ledger.reset()

    def _register(self, provider: ProviderAdapter) -> None:
        existing = self.get_provider(provider.name)
        if existing is not None:
            self._providers[self._providers.index(existing)] = provider
        else:
            self._providers.append(provider)
        self._ledger.ensure(provider.name)

    def _check_budget(self) -> None:
        if self.monthly_budget is not None:
            self._ledger.check_budget(self.monthly_budget)

    async def _invoke(
        self,
        provider: ProviderAdapter,
        prompt: str,
        task_type: TaskType,
        options: GenerationOptions | None,
    ) -> GenerationResult:
        """Call one provider and record the result in the ledger."""
        result = await provider.generate(prompt, task_type, options)
        self._ledger.record(result)
        return result

    async def _failover(
        self,
        error: Exception,
        candidates: Iterable[ProviderAdapter],
        prompt: str,
        task_type: TaskType,
        options: GenerationOptions | None,
        on_success: Callable[[ProviderAdapter, GenerationResult], None] | None = None,
    ) -> GenerationResult:
        """Try each candidate in order after the primary provider failed.

        Returns the first successful result. When every candidate fails,
        the primary provider's error is re-raised.
        """
        for fallback in candidates:
            try:
                result = await self._invoke(fallback, prompt, task_type, options)
            except Exception as fallback_error:
                logger.warning("Fallback provider %s failed: %s", fallback.name, fallback_error)
                continue

            logger.info("Fallback provider %s succeeded", fallback.name)
            if on_success is not None:
                on_success(fallback, result)
            return result

        raise error


class TaskRouter(BaseRouter):
    """Routes requests to providers from a static task-type preference table.

    Research and analysis go to Anthropic, writing and review to OpenAI.
    Outlines go to the cheapest provider so far when cost optimization
    is enabled, otherwise to Anthropic.
    """

    def __init__(
        self,
        providers: Iterable[ProviderAdapter],
        config: RouterConfig | None = None,
    ):
        super().__init__(providers)
        self._config = config or RouterConfig()

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def monthly_budget(self) -> float:
        return self._config.monthly_budget

    def select_provider(self, task_type: TaskType | str) -> ProviderAdapter:
        """Select the provider for a task type.

        Raises:
            NoProviderAvailableError: If no registered provider is available
        """
        task_type = TaskType(task_type)
        preferred = self._preferred_provider(task_type)

        if preferred is not None and preferred.is_available():
            return preferred

        # Fall back to any available provider, in registration order
        for provider in self._providers:
            if provider.is_available():
                logger.debug(
                    "Preferred provider for %s unavailable, using %s",
                    task_type.value, provider.name,
                )
                return provider

        raise NoProviderAvailableError()

    def _preferred_provider(self, task_type: TaskType) -> ProviderAdapter | None:
        if task_type in PREFERRED_PROVIDERS:
            return self.get_provider(PREFERRED_PROVIDERS[task_type])

        if task_type == TaskType.OUTLINE:
            if self._config.cost_optimization:
                return self._cost_effective_provider()
            return self.get_provider(ANTHROPIC)

        return self._providers[0] if self._providers else None

    def _cost_effective_provider(self) -> ProviderAdapter | None:
        """The available provider with the lowest spend so far."""
        available = [p for p in self._providers if p.is_available()]
        if not available:
            return None
        # min() keeps registration order on ties
        return min(available, key=lambda p: self._ledger.cost_for(p.name))

    async def generate_with_failover(
        self,
        prompt: str,
        task_type: TaskType | str,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Generate content, failing over on retryable errors.

        The budget is checked once, before the primary attempt.

        Raises:
            BudgetExceededError: If spend has reached the monthly budget
            NoProviderAvailableError: If no provider is available
            ProviderError: The primary provider's error, when it is not
                retryable, fallback is disabled, or every fallback failed
        """
        self._check_budget()

        task_type = TaskType(task_type)
        primary = self.select_provider(task_type)
        logger.debug("Routing %s task to %s", task_type.value, primary.name)

        try:
            return await self._invoke(primary, prompt, task_type, options)
        except Exception as e:
            if not self._config.fallback_enabled or not is_retryable(e):
                raise

            logger.warning("Provider %s failed with retryable error, failing over: %s", primary.name, e)
            candidates = [
                p for p in self._providers
                if p.name != primary.name and p.is_available()
            ]
            return await self._failover(e, candidates, prompt, task_type, options)
