"""Local model adapter for Ollama and OpenAI-compatible servers (vLLM, LMStudio)."""

from __future__ import annotations

from typing import Any

import aiohttp

from aiworkflow.llm.adapters.base import ProviderAdapter
from aiworkflow.llm.errors import ErrorKind, ProviderError, kind_for_status
from aiworkflow.llm.types import Completion, GenerationOptions


class LocalModelAdapter(ProviderAdapter):
    """Adapter for self-hosted models.

    The credential is the server endpoint rather than an API key. Calls
    are free, so a local adapter never moves the budget ledger.
    """

    name = "local"
    display_name = "Local"
    credential_label = "endpoint"
    default_model = "llama3.1:8b"
    max_output_tokens = 8192
    rate_limits = {"requests_per_minute": 600, "tokens_per_minute": 1000000}

    def __init__(
        self,
        endpoint: str,
        model: str | None = None,
        api_type: str = "ollama",
        timeout_seconds: float = 300,
        **kwargs: Any,
    ):
        """Initialize local model adapter.

        Args:
            endpoint: Server base URL (e.g. http://localhost:11434)
            model: Model name as known to the server
            api_type: API type ("ollama" or "openai-compatible")
            timeout_seconds: Total timeout for one request
            **kwargs: Additional configuration
        """
        super().__init__(endpoint, model, **kwargs)

        self._endpoint = endpoint.strip().rstrip("/")
        self._api_type = api_type
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def complete(
        self,
        prompt: str,
        system_prompt: str,
        options: GenerationOptions,
    ) -> Completion:
        """Execute completion with the local model."""
        if self._api_type == "openai-compatible":
            return await self._complete_openai_compatible(prompt, system_prompt, options)
        return await self._complete_ollama(prompt, system_prompt, options)

    async def _complete_ollama(
        self,
        prompt: str,
        system_prompt: str,
        options: GenerationOptions,
    ) -> Completion:
        """Complete using the Ollama generate API."""
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "system": system_prompt,
            "options": {"num_predict": options.max_tokens},
            "stream": False,
        }
        if options.temperature is not None:
            payload["options"]["temperature"] = options.temperature

        result = await self._post("/api/generate", payload)

        return Completion(
            content=result.get("response", ""),
            prompt_tokens=result.get("prompt_eval_count", 0),
            completion_tokens=result.get("eval_count", 0),
            finish_reason="stop" if result.get("done") else "length",
        )

    async def _complete_openai_compatible(
        self,
        prompt: str,
        system_prompt: str,
        options: GenerationOptions,
    ) -> Completion:
        """Complete using an OpenAI-compatible chat completions API."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": options.max_tokens,
        }
        if options.temperature is not None:
            payload["temperature"] = options.temperature

        result = await self._post("/v1/chat/completions", payload)

        choice = (result.get("choices") or [{}])[0]
        usage = result.get("usage", {})
        return Completion(
            content=choice.get("message", {}).get("content") or "",
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            finish_reason=choice.get("finish_reason") or "stop",
            request_id=result.get("id"),
        )

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.post(f"{self._endpoint}{path}", json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise ProviderError(
                        provider=self.name,
                        message=f"status {response.status}: {error_text}",
                        kind=kind_for_status(response.status),
                        code=str(response.status),
                        display_name=self.display_name,
                    )
                return await response.json()

    def classify_error(self, error: Exception) -> ErrorKind:
        """Classify aiohttp transport errors."""
        if isinstance(error, aiohttp.ServerTimeoutError):
            return ErrorKind.TIMEOUT
        if isinstance(error, aiohttp.ClientConnectionError):
            return ErrorKind.CONNECTION
        if isinstance(error, aiohttp.ClientResponseError):
            return kind_for_status(error.status)
        return super().classify_error(error)
