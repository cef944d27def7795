"""Anthropic Claude provider adapter."""

from __future__ import annotations

from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from aiworkflow.llm.adapters.base import ProviderAdapter
from aiworkflow.llm.errors import ErrorKind, kind_for_status
from aiworkflow.llm.types import Completion, GenerationOptions


class AnthropicAdapter(ProviderAdapter):
    """Adapter for Anthropic Claude models."""

    name = "anthropic"
    display_name = "Anthropic"
    default_model = "claude-3-5-sonnet-20241022"
    rate_limits = {"requests_per_minute": 50, "tokens_per_minute": 40000}

    # Model-specific output limits
    MODEL_CONFIGS = {
        "claude-opus-4-5": {"max_output": 32000},
        "claude-sonnet-4-5": {"max_output": 16000},
        "claude-3-5-sonnet-20241022": {"max_output": 8192},
        "claude-3-5-haiku-20241022": {"max_output": 8192},
        "claude-3-opus-20240229": {"max_output": 4096},
    }

    def __init__(self, api_key: str, model: str | None = None, **kwargs: Any):
        """Initialize Anthropic adapter.

        Args:
            api_key: Anthropic API key
            model: Model name (defaults to Claude 3.5 Sonnet)
            **kwargs: Additional client configuration
        """
        super().__init__(api_key, model, **kwargs)

        config = self.MODEL_CONFIGS.get(self.model, {"max_output": 4096})
        self.max_output_tokens = config["max_output"]

        # Initialize client lazily
        self._client: AsyncAnthropic | None = None

    @property
    def client(self) -> AsyncAnthropic:
        """Get or create the Anthropic client."""
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._api_key, **self._config)
        return self._client

    async def complete(
        self,
        prompt: str,
        system_prompt: str,
        options: GenerationOptions,
    ) -> Completion:
        """Execute completion with a Claude model."""
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": min(options.max_tokens, self.max_output_tokens),
            "system": system_prompt,
            "messages": [{"role": "user", "content": prompt}],
        }
        if options.temperature is not None:
            params["temperature"] = options.temperature

        response = await self.client.messages.create(**params)

        # Claude may return several blocks; take the first text block
        content = ""
        for block in response.content or []:
            if getattr(block, "type", None) == "text" and isinstance(getattr(block, "text", None), str):
                content = block.text
                break

        usage = response.usage
        return Completion(
            content=content,
            prompt_tokens=(usage.input_tokens or 0) if usage else 0,
            completion_tokens=(usage.output_tokens or 0) if usage else 0,
            finish_reason=getattr(response, "stop_reason", None) or "end_turn",
            request_id=getattr(response, "id", None),
        )

    def classify_error(self, error: Exception) -> ErrorKind:
        """Classify Anthropic SDK errors."""
        if isinstance(error, anthropic.APITimeoutError):
            return ErrorKind.TIMEOUT
        if isinstance(error, anthropic.APIConnectionError):
            return ErrorKind.CONNECTION
        if isinstance(error, anthropic.APIStatusError):
            return kind_for_status(error.status_code)
        return super().classify_error(error)
