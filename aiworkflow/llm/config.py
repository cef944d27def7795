"""Router configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RouterConfig(BaseModel):
    """Configuration for the static task router."""

    monthly_budget: float = Field(default=100.0, gt=0)
    fallback_enabled: bool = Field(default=True)
    cost_optimization: bool = Field(default=True)


class ContextRouterConfig(BaseModel):
    """Configuration for the context-aware router."""

    context_window: int = Field(default=10, ge=1)
    learning_enabled: bool = Field(default=True)
    cache_timeout: float = Field(default=300.0, gt=0, description="Cache TTL in seconds")
    monthly_budget: float | None = Field(
        default=None,
        gt=0,
        description="Optional spending ceiling; None leaves the router ungated",
    )


class RoutingSettings(BaseSettings):
    """Routing settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider credentials
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    local_llm_endpoint: str = ""

    # Model defaults
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    openai_model: str = "gpt-4o"
    local_llm_model: str = "llama3.1:8b"
    local_llm_api_type: str = "ollama"

    # Static router
    ai_monthly_budget: float = Field(default=100.0, gt=0)
    ai_fallback_enabled: bool = True
    ai_cost_optimization: bool = True

    # Context-aware router
    ai_context_window: int = Field(default=10, ge=1)
    ai_learning_enabled: bool = True
    ai_cache_timeout_seconds: float = Field(default=300.0, gt=0)

    @property
    def has_anthropic_key(self) -> bool:
        """Check if an Anthropic API key is configured."""
        return bool(self.anthropic_api_key.strip())

    @property
    def has_openai_key(self) -> bool:
        """Check if an OpenAI API key is configured."""
        return bool(self.openai_api_key.strip())

    @property
    def has_local_endpoint(self) -> bool:
        return bool(self.local_llm_endpoint.strip())

    @property
    def has_any_provider(self) -> bool:
        return self.has_anthropic_key or self.has_openai_key or self.has_local_endpoint

    def router_config(self) -> RouterConfig:
        return RouterConfig(
            monthly_budget=self.ai_monthly_budget,
            fallback_enabled=self.ai_fallback_enabled,
            cost_optimization=self.ai_cost_optimization,
        )

    def context_router_config(self) -> ContextRouterConfig:
        return ContextRouterConfig(
            context_window=self.ai_context_window,
            learning_enabled=self.ai_learning_enabled,
            cache_timeout=self.ai_cache_timeout_seconds,
        )
