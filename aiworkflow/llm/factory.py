"""Explicit construction of adapters and routers from settings.

Build a router once at application start and pass it to whatever needs
it; there is no process-wide router instance.
"""

from __future__ import annotations

import logging

from aiworkflow.llm.adapters import (
    AnthropicAdapter,
    LocalModelAdapter,
    OpenAIAdapter,
    ProviderAdapter,
)
from aiworkflow.llm.config import RoutingSettings
from aiworkflow.llm.context_router import ContextAwareRouter
from aiworkflow.llm.errors import ConfigurationError
from aiworkflow.llm.router import TaskRouter

logger = logging.getLogger(__name__)


def build_providers(settings: RoutingSettings) -> list[ProviderAdapter]:
    """Create an adapter for every configured credential.

    Anthropic comes first, then OpenAI, then the local endpoint; that order
    is the routers' fallback order.

    Raises:
        ConfigurationError: If no provider is configured
    """
    providers: list[ProviderAdapter] = []

    if settings.has_anthropic_key:
        providers.append(AnthropicAdapter(settings.anthropic_api_key, model=settings.anthropic_model))

    if settings.has_openai_key:
        providers.append(OpenAIAdapter(settings.openai_api_key, model=settings.openai_model))

    if settings.has_local_endpoint:
        providers.append(LocalModelAdapter(
            settings.local_llm_endpoint,
            model=settings.local_llm_model,
            api_type=settings.local_llm_api_type,
        ))

    if not providers:
        raise ConfigurationError("At least one AI provider API key is required")

    logger.info("Configured providers: %s", ", ".join(p.name for p in providers))
    return providers


def create_router(settings: RoutingSettings | None = None) -> TaskRouter:
    """Build a task router from settings (environment by default)."""
    settings = settings or RoutingSettings()
    return TaskRouter(build_providers(settings), settings.router_config())


def create_context_router(settings: RoutingSettings | None = None) -> ContextAwareRouter:
    """Build a context-aware router from settings (environment by default)."""
    settings = settings or RoutingSettings()
    return ContextAwareRouter(build_providers(settings), settings.context_router_config())
