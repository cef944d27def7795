"""Base provider adapter interface."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from aiworkflow.llm.errors import (
    ConfigurationError,
    ErrorKind,
    ProviderError,
    classify_message,
)
from aiworkflow.llm.prompts import get_system_prompt
from aiworkflow.llm.types import (
    Completion,
    GenerationOptions,
    GenerationResult,
    TaskType,
    Usage,
    calculate_cost,
)

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """Base class for backend-specific adapters.

    An adapter hides one backend's API shape behind a uniform interface:
    generate content, report availability, estimate and compute cost,
    and accumulate usage. Subclasses implement ``complete`` for the raw
    backend call and may refine ``classify_error`` with the exception
    types their SDK raises.
    """

    name: str = "base"
    display_name: str = "Base"
    credential_label: str = "API key"
    default_model: str = ""
    max_output_tokens: int = 4096
    rate_limits: dict[str, int] = {"requests_per_minute": 60, "tokens_per_minute": 100000}

    def __init__(self, api_key: str, model: str | None = None, **kwargs: Any):
        """Initialize the adapter with a resolved credential.

        Raises:
            ConfigurationError: If the credential is empty or blank
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError(f"{self.display_name} {self.credential_label} is required")

        self._api_key = api_key
        self.model = model or self.default_model
        self._config = kwargs
        self._usage = Usage()
        self.rate_limits = dict(self.rate_limits)

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_prompt: str,
        options: GenerationOptions,
    ) -> Completion:
        """Execute one raw completion request against the backend.

        Args:
            prompt: The user prompt
            system_prompt: System prompt for the task type
            options: Validated generation options

        Returns:
            Completion with content and token counts
        """

    async def generate(
        self,
        prompt: str,
        task_type: TaskType,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Generate content for a task.

        Raises:
            ProviderError: If the backend call fails for any reason
        """
        options = options or GenerationOptions()
        system_prompt = options.system_prompt or get_system_prompt(self.name, task_type)
        start_time = time.time()

        try:
            completion = await self.complete(prompt, system_prompt, options)
        except ProviderError:
            raise
        except Exception as e:
            error = self.wrap_error(e)
            logger.debug("%s call failed (%s): %s", self.name, error.kind.value, e)
            raise error from e

        latency = (time.time() - start_time) * 1000
        input_tokens = completion.prompt_tokens
        output_tokens = completion.completion_tokens
        self._update_usage(input_tokens, output_tokens)

        return GenerationResult(
            content=completion.content,
            usage=Usage(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            cost=self.calculate_cost(input_tokens, output_tokens),
            provider=self.name,
            model=self.model,
            latency_ms=latency,
        )

    def is_available(self) -> bool:
        """Whether the adapter holds a credential and can take requests."""
        return bool(self._api_key)

    def estimate_tokens(self, text: str) -> int:
        """Estimate token count for text (~4 characters per token)."""
        return math.ceil(len(text) / 4)

    def estimate_cost(self, prompt: str) -> float:
        """Estimate the cost of a prompt, assuming an equally long answer."""
        estimated_tokens = self.estimate_tokens(prompt)
        return self.calculate_cost(estimated_tokens, estimated_tokens)

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return calculate_cost(self.name, input_tokens, output_tokens)

    def get_usage(self) -> Usage:
        """Get cumulative usage (a copy; mutating it has no effect)."""
        return self._usage.model_copy()

    def get_model_name(self) -> str:
        return self.model

    def get_max_tokens(self) -> int:
        return self.max_output_tokens

    def get_rate_limits(self) -> dict[str, int]:
        return dict(self.rate_limits)

    def classify_error(self, error: Exception) -> ErrorKind:
        """Classify a failure raised by ``complete``.

        Override in subclasses to recognize SDK-specific exception types.
        """
        if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)):
            return ErrorKind.TIMEOUT
        if isinstance(error, httpx.NetworkError):
            return ErrorKind.NETWORK
        return classify_message(str(error))

    def wrap_error(self, error: Exception, kind: ErrorKind | None = None) -> ProviderError:
        """Wrap a raw failure as a ProviderError for this adapter."""
        code = getattr(error, "code", None)
        if code is None and getattr(error, "status_code", None) is not None:
            code = str(error.status_code)
        return ProviderError(
            provider=self.name,
            message=str(error),
            kind=kind or self.classify_error(error),
            code=str(code) if code is not None else None,
            display_name=self.display_name,
        )

    def _update_usage(self, input_tokens: int, output_tokens: int) -> None:
        self._usage.input_tokens += input_tokens
        self._usage.output_tokens += output_tokens
        self._usage.total_tokens += input_tokens + output_tokens

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"
