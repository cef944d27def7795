"""OpenAI provider adapter."""

from __future__ import annotations

from typing import Any

import openai
from openai import AsyncOpenAI

from aiworkflow.llm.adapters.base import ProviderAdapter
from aiworkflow.llm.errors import ErrorKind, kind_for_status
from aiworkflow.llm.types import Completion, GenerationOptions


class OpenAIAdapter(ProviderAdapter):
    """Adapter for OpenAI models (GPT-4o, o1, o3, etc.)."""

    name = "openai"
    display_name = "OpenAI"
    default_model = "gpt-4o"
    rate_limits = {"requests_per_minute": 60, "tokens_per_minute": 90000}

    # Model-specific configurations
    MODEL_CONFIGS = {
        "o3": {"max_output": 100000, "is_reasoning": True},
        "o1": {"max_output": 100000, "is_reasoning": True},
        "o1-mini": {"max_output": 65536, "is_reasoning": True},
        "gpt-4o": {"max_output": 16384, "is_reasoning": False},
        "gpt-4o-mini": {"max_output": 16384, "is_reasoning": False},
        "gpt-4-turbo": {"max_output": 4096, "is_reasoning": False},
    }

    def __init__(self, api_key: str, model: str | None = None, **kwargs: Any):
        """Initialize OpenAI adapter.

        Args:
            api_key: OpenAI API key
            model: Model name (defaults to gpt-4o)
            **kwargs: Additional client configuration
        """
        super().__init__(api_key, model, **kwargs)

        config = self.MODEL_CONFIGS.get(self.model, {"max_output": 4096, "is_reasoning": False})
        self.max_output_tokens = config["max_output"]
        self.is_reasoning_model = config["is_reasoning"]

        # Initialize client lazily
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, **self._config)
        return self._client

    async def complete(
        self,
        prompt: str,
        system_prompt: str,
        options: GenerationOptions,
    ) -> Completion:
        """Execute completion with an OpenAI model."""
        messages = []
        if self.is_reasoning_model:
            # Reasoning models don't support system prompts
            prompt = f"{system_prompt}\n\n{prompt}"
        else:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_completion_tokens" if self.is_reasoning_model else "max_tokens": options.max_tokens,
        }

        # Reasoning models don't support temperature
        if options.temperature is not None and not self.is_reasoning_model:
            params["temperature"] = options.temperature

        response = await self.client.chat.completions.create(**params)

        choice = response.choices[0] if response.choices else None
        usage = response.usage
        return Completion(
            content=(choice.message.content or "") if choice else "",
            prompt_tokens=(usage.prompt_tokens or 0) if usage else 0,
            completion_tokens=(usage.completion_tokens or 0) if usage else 0,
            finish_reason=(getattr(choice, "finish_reason", None) or "stop") if choice else "stop",
            request_id=getattr(response, "id", None),
        )

    def classify_error(self, error: Exception) -> ErrorKind:
        """Classify OpenAI SDK errors."""
        if isinstance(error, openai.APITimeoutError):
            return ErrorKind.TIMEOUT
        if isinstance(error, openai.APIConnectionError):
            return ErrorKind.CONNECTION
        if isinstance(error, openai.APIStatusError):
            return kind_for_status(error.status_code)
        return super().classify_error(error)
