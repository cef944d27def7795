"""Core types for the provider routing layer."""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaskType(str, Enum):
    """Types of tasks a generation request can carry.

    The static router's preference table covers research, writing,
    analysis, outline and review. The context-aware router's default
    routing covers research, generation, analysis and general.
    """

    RESEARCH = "research"
    WRITING = "writing"
    ANALYSIS = "analysis"
    OUTLINE = "outline"
    REVIEW = "review"
    GENERATION = "generation"
    GENERAL = "general"


class GenerationOptions(BaseModel):
    """Per-call generation options, validated at the boundary."""

    model_config = ConfigDict(extra="forbid")

    max_tokens: int = Field(default=4000, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    system_prompt: str | None = Field(
        default=None,
        description="Overrides the provider's system prompt for the task type",
    )


class RequestMetadata(BaseModel):
    """Routing metadata attached to a context-aware request."""

    workflow_step: str | None = Field(default=None)
    enhance_with_context: bool = Field(default=False)
    extra: dict[str, Any] = Field(default_factory=dict)


class AIRequest(BaseModel):
    """A request routed by the context-aware router."""

    prompt: str
    type: TaskType = Field(default=TaskType.GENERAL)
    metadata: RequestMetadata = Field(default_factory=RequestMetadata)
    options: GenerationOptions | None = Field(default=None)

    @property
    def workflow_step(self) -> str | None:
        return self.metadata.workflow_step


class Usage(BaseModel):
    """Token usage for one call or accumulated over many."""

    input_tokens: int = Field(default=0)
    output_tokens: int = Field(default=0)
    total_tokens: int = Field(default=0)


class Completion(BaseModel):
    """Raw output of a single backend call, before cost accounting."""

    content: str = Field(default="")
    prompt_tokens: int = Field(default=0)
    completion_tokens: int = Field(default=0)
    finish_reason: str = Field(default="stop")
    request_id: str | None = Field(default=None)


class GenerationResult(BaseModel):
    """Normalized result of a generation call."""

    content: str = Field(description="Generated content")
    usage: Usage = Field(default_factory=Usage)
    cost: float = Field(default=0.0)
    provider: str = Field(description="Name of the provider that produced this result")
    model: str = Field(default="")
    latency_ms: float = Field(default=0.0)


class ProviderUsageStats(BaseModel):
    """Running totals for one provider in a usage ledger."""

    total_tokens: int = Field(default=0)
    total_cost: float = Field(default=0.0)
    request_count: int = Field(default=0)
    last_reset: datetime = Field(default_factory=datetime.utcnow)


UsageStats = dict[str, ProviderUsageStats]


class BudgetStatus(BaseModel):
    """Spend against the monthly budget."""

    used: float
    remaining: float
    percentage: float


class Feedback(BaseModel):
    """Outcome feedback recorded against a provider."""

    success: bool
    response_time: float | None = Field(default=None, description="Response time in ms")
    error: str | None = Field(default=None)


class ContextEntry(BaseModel):
    """One record in the context-aware router's interaction window."""

    timestamp: float = Field(default_factory=time.time)
    request: AIRequest
    provider: str
    response: GenerationResult | None = Field(default=None)
    feedback: Feedback | None = Field(default=None)

    @property
    def workflow_step(self) -> str | None:
        return self.request.metadata.workflow_step

    @property
    def failed(self) -> bool:
        return self.feedback is not None and not self.feedback.success


class ContextInsights(BaseModel):
    """Summary of what the context-aware router has learned."""

    preferred_providers: dict[str, str] = Field(default_factory=dict)
    average_response_times: dict[str, int] = Field(default_factory=dict)
    success_rates: dict[str, float] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)


class PrewarmStatus(BaseModel):
    """Prediction of the next workflow step."""

    next_likely_step: str = Field(default="")
    confidence: float = Field(default=0.0)
    suggested_provider: str | None = Field(default=None)


# Pricing per 1K tokens (approximate)
PRICING: dict[str, dict[str, float]] = {
    "anthropic": {"input": 0.003, "output": 0.015},
    "openai": {"input": 0.005, "output": 0.015},
    "local": {"input": 0.0, "output": 0.0},
}


def calculate_cost(provider: str, input_tokens: int, output_tokens: int) -> float:
    """Calculate cost for a call against a provider's pricing."""
    pricing = PRICING.get(provider, {"input": 0.0, "output": 0.0})
    input_cost = (input_tokens / 1000) * pricing["input"]
    output_cost = (output_tokens / 1000) * pricing["output"]
    return input_cost + output_cost
