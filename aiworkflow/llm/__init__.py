"""Provider routing layer for aiworkflow.

Issues text-generation requests against interchangeable LLM backends:
- Uniform adapters over Anthropic, OpenAI and local models
- Task-based routing with failover and a monthly budget
- Context-aware routing that learns provider preferences per workflow step
"""

from aiworkflow.llm.types import (
    TaskType,
    AIRequest,
    RequestMetadata,
    GenerationOptions,
    GenerationResult,
    Usage,
    ProviderUsageStats,
    UsageStats,
    BudgetStatus,
    Feedback,
    ContextEntry,
    ContextInsights,
    PrewarmStatus,
    PRICING,
    calculate_cost,
)
from aiworkflow.llm.errors import (
    ErrorKind,
    RoutingError,
    ConfigurationError,
    ProviderError,
    BudgetExceededError,
    NoProviderAvailableError,
    is_retryable,
)
from aiworkflow.llm.adapters import (
    ProviderAdapter,
    AnthropicAdapter,
    OpenAIAdapter,
    LocalModelAdapter,
)
from aiworkflow.llm.config import (
    RouterConfig,
    ContextRouterConfig,
    RoutingSettings,
)
from aiworkflow.llm.ledger import UsageLedger
from aiworkflow.llm.cache import ResponseCache, CacheEntry
from aiworkflow.llm.context import ContextWindow, ProviderLearningStats
from aiworkflow.llm.router import BaseRouter, TaskRouter
from aiworkflow.llm.context_router import ContextAwareRouter
from aiworkflow.llm.factory import (
    build_providers,
    create_router,
    create_context_router,
)

__all__ = [
    # Types
    "TaskType",
    "AIRequest",
    "RequestMetadata",
    "GenerationOptions",
    "GenerationResult",
    "Usage",
    "ProviderUsageStats",
    "UsageStats",
    "BudgetStatus",
    "Feedback",
    "ContextEntry",
    "ContextInsights",
    "PrewarmStatus",
    "PRICING",
    "calculate_cost",
    # Errors
    "ErrorKind",
    "RoutingError",
    "ConfigurationError",
    "ProviderError",
    "BudgetExceededError",
    "NoProviderAvailableError",
    "is_retryable",
    # Adapters
    "ProviderAdapter",
    "AnthropicAdapter",
    "OpenAIAdapter",
    "LocalModelAdapter",
    # Config
    "RouterConfig",
    "ContextRouterConfig",
    "RoutingSettings",
    # State
    "UsageLedger",
    "ResponseCache",
    "CacheEntry",
    "ContextWindow",
    "ProviderLearningStats",
    # Routers
    "BaseRouter",
    "TaskRouter",
    "ContextAwareRouter",
    "build_providers",
    "create_router",
    "create_context_router",
]
