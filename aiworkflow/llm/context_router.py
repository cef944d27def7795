"""Context-aware router that learns provider preferences from feedback.

On top of the shared provider registry and ledger, the router keeps:
- a bounded window of recent requests, responses and feedback
- per-provider, per-workflow-step preference scores
- a short-lived response cache
- step-transition counts used to predict the next workflow step
"""

from __future__ import annotations

import logging
from typing import Iterable

from aiworkflow.llm.adapters.base import ProviderAdapter
from aiworkflow.llm.cache import ResponseCache
from aiworkflow.llm.config import ContextRouterConfig
from aiworkflow.llm.context import ContextWindow, ProviderLearningStats
from aiworkflow.llm.errors import NoProviderAvailableError
from aiworkflow.llm.router import ANTHROPIC, OPENAI, BaseRouter
from aiworkflow.llm.types import (
    AIRequest,
    ContextEntry,
    ContextInsights,
    Feedback,
    GenerationResult,
    PrewarmStatus,
    TaskType,
)

logger = logging.getLogger(__name__)

# Window entries inspected for recent provider failures
RECENT_FAILURE_LOOKBACK = 5

# Learned score = STEP_WEIGHT * step score + SUCCESS_WEIGHT * (success rate * 10)
STEP_WEIGHT = 0.7
SUCCESS_WEIGHT = 0.3
LEARNED_SCORE_THRESHOLD = 2.0
UNKNOWN_SUCCESS_RATE = 0.5

# Prompt enhancement
CONTEXT_ENTRIES_FOR_ENHANCEMENT = 3
CONTEXT_SUMMARY_CHARS = 200

LOW_SUCCESS_RATE = 0.7

DEFAULT_PROVIDER_BY_TYPE: dict[TaskType, str] = {
    TaskType.GENERATION: OPENAI,
    TaskType.RESEARCH: ANTHROPIC,
    TaskType.ANALYSIS: ANTHROPIC,
}

RESEARCH_STEP = "RESEARCH"
GENERATE_STEP = "GENERATE"


class ContextAwareRouter(BaseRouter):
    """Routes requests using learned, per-step provider preferences.

    Unlike ``TaskRouter``, a failed call is retried on every other
    registered provider, whatever the error was.
    """

    def __init__(
        self,
        providers: Iterable[ProviderAdapter],
        config: ContextRouterConfig | None = None,
        cache: ResponseCache | None = None,
    ):
        self._config = config or ContextRouterConfig()
        self._stats: dict[str, ProviderLearningStats] = {}
        super().__init__(providers)

        self._window = ContextWindow(self._config.context_window)
        self._cache = cache or ResponseCache(ttl_seconds=self._config.cache_timeout)

    @property
    def config(self) -> ContextRouterConfig:
        return self._config

    @property
    def monthly_budget(self) -> float | None:
        return self._config.monthly_budget

    @property
    def learning_enabled(self) -> bool:
        return self._config.learning_enabled

    def get_learning_stats(self, provider: str) -> ProviderLearningStats | None:
        return self._stats.get(provider)

    def remove_provider(self, name: str) -> None:
        super().remove_provider(name)
        self._stats.pop(name, None)

    def _register(self, provider: ProviderAdapter) -> None:
        super()._register(provider)
        self._stats.setdefault(provider.name, ProviderLearningStats())

    async def route(self, request: AIRequest) -> GenerationResult:
        """Route a request to the best provider for its context.

        A cached response for the same request is returned as is, without
        updating the context window, learning stats or ledger.

        Raises:
            BudgetExceededError: If a budget is configured and exhausted
            NoProviderAvailableError: If no provider can take the request
            ProviderError: The selected provider's error, when every
                other provider failed too
        """
        cache_key = ResponseCache.key_for(request)
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for %s request", request.type.value)
            return cached

        enhanced = self._enhance_with_context(request)
        self._check_budget()

        provider = self.select_provider(enhanced)
        if provider is None:
            raise NoProviderAvailableError()

        try:
            result = await self._invoke(provider, enhanced.prompt, enhanced.type, enhanced.options)
        except Exception as e:
            self._window.append(ContextEntry(
                request=enhanced,
                provider=provider.name,
                feedback=Feedback(success=False, error=str(e)),
            ))
            logger.warning("Provider %s failed, trying other providers: %s", provider.name, e)

            def record_fallback(fallback: ProviderAdapter, fallback_result: GenerationResult) -> None:
                self._window.append(ContextEntry(
                    request=enhanced,
                    provider=fallback.name,
                    response=fallback_result,
                ))

            candidates = [p for p in self._providers if p.name != provider.name]
            return await self._failover(
                e, candidates, enhanced.prompt, enhanced.type, enhanced.options,
                on_success=record_fallback,
            )

        self._window.append(ContextEntry(
            request=enhanced,
            provider=provider.name,
            response=result,
        ))
        self._cache.put(cache_key, result)
        return result

    def select_provider(self, request: AIRequest) -> ProviderAdapter | None:
        """Pick a provider from learned preferences, else default routing."""
        step = request.metadata.workflow_step
        recent_failures = self._window.recent_failures(RECENT_FAILURE_LOOKBACK)

        if self._config.learning_enabled and step:
            learned = self._learned_provider(step, recent_failures)
            if learned is not None:
                return learned

        # Default routing by request type
        default_name = DEFAULT_PROVIDER_BY_TYPE.get(request.type)
        if default_name and default_name not in recent_failures:
            provider = self.get_provider(default_name)
            if provider is not None and provider.is_available():
                return provider

        for name in self._fallback_order(request.type):
            if name in recent_failures:
                continue
            provider = self.get_provider(name)
            if provider is not None and provider.is_available():
                return provider

        return None

    def _learned_provider(self, step: str, excluded: set[str]) -> ProviderAdapter | None:
        best_provider: ProviderAdapter | None = None
        best_score = float("-inf")

        for provider in self._providers:
            if provider.name in excluded or not provider.is_available():
                continue
            stats = self._stats.get(provider.name)
            if stats is None:
                continue

            success_rate = stats.success_rate(default=UNKNOWN_SUCCESS_RATE)
            score = STEP_WEIGHT * stats.step_score(step) + SUCCESS_WEIGHT * (success_rate * 10)
            if score > best_score:
                best_score = score
                best_provider = provider

        # Only trust a clear learned preference
        if best_provider is not None and best_score > LEARNED_SCORE_THRESHOLD:
            logger.debug("Learned preference for %s: %s (score %.2f)", step, best_provider.name, best_score)
            return best_provider
        return None

    def _fallback_order(self, request_type: TaskType) -> list[str]:
        if request_type == TaskType.GENERATION:
            preferred = [OPENAI, ANTHROPIC]
        else:
            preferred = [ANTHROPIC, OPENAI]
        others = [p.name for p in self._providers if p.name not in preferred]
        return preferred + others

    def _enhance_with_context(self, request: AIRequest) -> AIRequest:
        """Append recent successful responses to the prompt when asked to."""
        if not request.metadata.enhance_with_context:
            return request

        entries = self._window.successful_responses(CONTEXT_ENTRIES_FOR_ENHANCEMENT)
        if not entries:
            return request

        lines = [
            f"- {entry.workflow_step or 'previous'}: "
            f"{entry.response.content[:CONTEXT_SUMMARY_CHARS]}..."
            for entry in entries
        ]
        context_prompt = (
            "\n\nContext from previous research:\n"
            + "\n".join(lines)
            + "\n\nBased on this context, "
        )
        return request.model_copy(update={"prompt": request.prompt + context_prompt})

    def record_feedback(self, request: AIRequest, provider_name: str, feedback: Feedback) -> None:
        """Record the outcome of a call against a provider.

        Feedback entries share the context window with routed requests.
        """
        stats = self._stats.get(provider_name)
        if stats is None:
            logger.warning("Ignoring feedback for unknown provider %s", provider_name)
            return

        stats.record(
            success=feedback.success,
            step=request.metadata.workflow_step,
            response_time=feedback.response_time,
        )
        self._window.append(ContextEntry(
            request=request,
            provider=provider_name,
            feedback=feedback,
        ))

    def get_context_window(self) -> list[ContextEntry]:
        return self._window.entries()

    def get_context_insights(self) -> ContextInsights:
        """Summarize learned preferences, performance and recommendations."""
        insights = ContextInsights()
        step_scores: dict[str, dict[str, int]] = {}

        for name, stats in self._stats.items():
            insights.average_response_times[name] = round(stats.average_response_time)
            insights.success_rates[name] = stats.success_rate()
            for step, score in stats.step_preferences.items():
                step_scores.setdefault(step, {})[name] = score

        for step, scores in step_scores.items():
            best_name = max(scores, key=scores.get)
            if scores[best_name] > 0:
                insights.preferred_providers[step] = best_name

        if insights.preferred_providers.get(RESEARCH_STEP) == ANTHROPIC:
            insights.recommendations.append("anthropic for research tasks")
        if insights.preferred_providers.get(GENERATE_STEP) == OPENAI:
            insights.recommendations.append("openai for content generation")

        for name, rate in insights.success_rates.items():
            if rate < LOW_SUCCESS_RATE:
                insights.recommendations.append(
                    f"Consider reducing usage of {name} due to low success rate ({round(rate * 100)}%)"
                )

        return insights

    def get_prewarm_status(self, current_step: str) -> PrewarmStatus:
        """Predict the step most likely to follow ``current_step``."""
        transitions = self._window.step_transitions(current_step)
        if not transitions:
            return PrewarmStatus()

        total = sum(transitions.values())
        next_step, count = transitions.most_common(1)[0]
        return PrewarmStatus(
            next_likely_step=next_step,
            confidence=count / total,
            suggested_provider=self._preferred_provider_for_step(next_step),
        )

    def _preferred_provider_for_step(self, step: str) -> str | None:
        best_name: str | None = None
        best_score = 0
        for name, stats in self._stats.items():
            score = stats.step_score(step)
            if score > best_score:
                best_name, best_score = name, score
        return best_name

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> dict:
        return self._cache.stats()
