"""Tests for provider adapters."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import aiohttp
import anthropic
import httpx
import openai
import pytest
from pydantic import ValidationError

from aiworkflow.llm.adapters import (
    ProviderAdapter,
    AnthropicAdapter,
    LocalModelAdapter,
    OpenAIAdapter,
)
from aiworkflow.llm.errors import ConfigurationError, ErrorKind, ProviderError
from aiworkflow.llm.types import GenerationOptions, TaskType


def anthropic_response(text="Generated content", input_tokens=10, output_tokens=20):
    return SimpleNamespace(
        id="msg_123",
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
        stop_reason="end_turn",
    )


def openai_response(text="Generated content", prompt_tokens=10, completion_tokens=20):
    return SimpleNamespace(
        id="chatcmpl-123",
        choices=[SimpleNamespace(message=SimpleNamespace(content=text), finish_reason="stop")],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


def mock_anthropic_client(adapter, **create_kwargs):
    create = AsyncMock(**create_kwargs)
    adapter._client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return create


def mock_openai_client(adapter, **create_kwargs):
    create = AsyncMock(**create_kwargs)
    adapter._client = SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=create))
    )
    return create


# =============================================================================
# Construction
# =============================================================================

class TestAdapterConstruction:
    """Adapters fail fast on missing credentials."""

    def test_anthropic_with_valid_key(self):
        adapter = AnthropicAdapter("test-key")
        assert adapter.name == "anthropic"
        assert adapter.is_available()
        assert adapter.get_model_name() == "claude-3-5-sonnet-20241022"

    def test_openai_with_valid_key(self):
        adapter = OpenAIAdapter("test-key", model="gpt-4o-mini")
        assert adapter.name == "openai"
        assert adapter.is_available()
        assert adapter.get_model_name() == "gpt-4o-mini"

    def test_anthropic_empty_key_raises(self):
        with pytest.raises(ConfigurationError, match="Anthropic API key is required"):
            AnthropicAdapter("")

    def test_openai_blank_key_raises(self):
        with pytest.raises(ConfigurationError, match="OpenAI API key is required"):
            OpenAIAdapter("   ")

    def test_local_requires_endpoint(self):
        with pytest.raises(ConfigurationError, match="Local endpoint is required"):
            LocalModelAdapter("")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            OpenAIAdapter("")

    def test_metadata_accessors(self):
        adapter = AnthropicAdapter("test-key")
        limits = adapter.get_rate_limits()
        limits["requests_per_minute"] = 0

        assert adapter.get_rate_limits()["requests_per_minute"] == 50
        assert adapter.get_max_tokens() == 8192

    def test_rate_limits_are_per_instance(self, make_provider):
        first = make_provider("first")
        second = make_provider("second")

        first.rate_limits["requests_per_minute"] = 1

        assert second.get_rate_limits()["requests_per_minute"] == 60
        assert ProviderAdapter.rate_limits["requests_per_minute"] == 60


# =============================================================================
# Anthropic
# =============================================================================

class TestAnthropicAdapter:
    """Test the Anthropic adapter against a mocked SDK client."""

    @pytest.mark.asyncio
    async def test_generate_content(self):
        """Successful call returns a normalized result."""
        adapter = AnthropicAdapter("test-key")
        mock_anthropic_client(adapter, return_value=anthropic_response())

        result = await adapter.generate("Test prompt", TaskType.RESEARCH)

        assert result.content == "Generated content"
        assert result.usage.input_tokens == 10
        assert result.usage.output_tokens == 20
        assert result.usage.total_tokens == 30
        assert result.provider == "anthropic"
        assert result.cost == pytest.approx(10 / 1000 * 0.003 + 20 / 1000 * 0.015)

    @pytest.mark.asyncio
    async def test_uses_task_system_prompt(self):
        adapter = AnthropicAdapter("test-key")
        create = mock_anthropic_client(adapter, return_value=anthropic_response())

        await adapter.generate("Test prompt", TaskType.RESEARCH)

        params = create.call_args.kwargs
        assert "academic researcher" in params["system"]
        assert params["messages"] == [{"role": "user", "content": "Test prompt"}]
        assert params["max_tokens"] == 4000
        assert "temperature" not in params

    @pytest.mark.asyncio
    async def test_options_override_defaults(self):
        adapter = AnthropicAdapter("test-key")
        create = mock_anthropic_client(adapter, return_value=anthropic_response())
        options = GenerationOptions(max_tokens=500, temperature=0.2, system_prompt="Be brief.")

        await adapter.generate("Test prompt", TaskType.WRITING, options)

        params = create.call_args.kwargs
        assert params["max_tokens"] == 500
        assert params["temperature"] == 0.2
        assert params["system"] == "Be brief."

    @pytest.mark.asyncio
    async def test_skips_non_text_blocks(self):
        adapter = AnthropicAdapter("test-key")
        response = anthropic_response()
        response.content = [
            SimpleNamespace(type="tool_use", id="tool_1"),
            SimpleNamespace(type="text", text="Answer"),
        ]
        mock_anthropic_client(adapter, return_value=response)

        result = await adapter.generate("Test prompt", TaskType.ANALYSIS)

        assert result.content == "Answer"

    @pytest.mark.asyncio
    async def test_usage_accumulates(self):
        """Each successful call adds to the adapter's cumulative usage."""
        adapter = AnthropicAdapter("test-key")
        mock_anthropic_client(adapter, return_value=anthropic_response())

        await adapter.generate("First", TaskType.RESEARCH)
        await adapter.generate("Second", TaskType.RESEARCH)

        usage = adapter.get_usage()
        assert usage.input_tokens == 20
        assert usage.output_tokens == 40
        assert usage.total_tokens == 60

    @pytest.mark.asyncio
    async def test_get_usage_returns_copy(self):
        adapter = AnthropicAdapter("test-key")
        mock_anthropic_client(adapter, return_value=anthropic_response())
        await adapter.generate("Test prompt", TaskType.RESEARCH)

        usage = adapter.get_usage()
        usage.total_tokens = 0

        assert adapter.get_usage().total_tokens == 30

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self):
        """Raw SDK errors never leak out of the adapter."""
        adapter = AnthropicAdapter("test-key")
        mock_anthropic_client(adapter, side_effect=Exception("API Error"))

        with pytest.raises(ProviderError, match="Anthropic API Error: API Error") as exc_info:
            await adapter.generate("Test prompt", TaskType.RESEARCH)

        error = exc_info.value
        assert error.provider == "anthropic"
        assert error.retryable is False
        assert isinstance(error.__cause__, Exception)
        assert adapter.get_usage().total_tokens == 0

    @pytest.mark.asyncio
    async def test_transient_message_is_retryable(self):
        adapter = AnthropicAdapter("test-key")
        mock_anthropic_client(adapter, side_effect=Exception("Service unavailable"))

        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate("Test prompt", TaskType.RESEARCH)

        assert exc_info.value.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_sdk_timeout_is_classified(self):
        adapter = AnthropicAdapter("test-key")
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        mock_anthropic_client(adapter, side_effect=anthropic.APITimeoutError(request=request))

        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate("Test prompt", TaskType.RESEARCH)

        assert exc_info.value.kind == ErrorKind.TIMEOUT
        assert exc_info.value.retryable is True

    def test_sdk_status_errors_are_classified(self):
        adapter = AnthropicAdapter("test-key")
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")

        overloaded = anthropic.APIStatusError(
            "Overloaded", response=httpx.Response(529, request=request), body=None
        )
        unauthorized = anthropic.AuthenticationError(
            "invalid x-api-key", response=httpx.Response(401, request=request), body=None
        )

        assert adapter.classify_error(overloaded) == ErrorKind.SERVICE_UNAVAILABLE
        assert adapter.classify_error(unauthorized) == ErrorKind.AUTHENTICATION
        assert adapter.wrap_error(unauthorized).code == "401"


# =============================================================================
# OpenAI
# =============================================================================

class TestOpenAIAdapter:
    """Test the OpenAI adapter against a mocked SDK client."""

    @pytest.mark.asyncio
    async def test_generate_content(self):
        adapter = OpenAIAdapter("test-key")
        mock_openai_client(adapter, return_value=openai_response())

        result = await adapter.generate("Test prompt", TaskType.WRITING)

        assert result.content == "Generated content"
        assert result.usage.total_tokens == 30
        assert result.provider == "openai"
        assert result.model == "gpt-4o"
        assert result.cost == pytest.approx(10 / 1000 * 0.005 + 20 / 1000 * 0.015)

    @pytest.mark.asyncio
    async def test_sends_system_and_user_messages(self):
        adapter = OpenAIAdapter("test-key")
        create = mock_openai_client(adapter, return_value=openai_response())

        await adapter.generate("Test prompt", TaskType.REVIEW, GenerationOptions(max_tokens=256))

        params = create.call_args.kwargs
        assert params["messages"][0]["role"] == "system"
        assert "reviewer" in params["messages"][0]["content"]
        assert params["messages"][1] == {"role": "user", "content": "Test prompt"}
        assert params["max_tokens"] == 256

    @pytest.mark.asyncio
    async def test_reasoning_model_folds_system_prompt(self):
        adapter = OpenAIAdapter("test-key", model="o1")
        create = mock_openai_client(adapter, return_value=openai_response())

        await adapter.generate("Test prompt", TaskType.ANALYSIS, GenerationOptions(temperature=0.5))

        params = create.call_args.kwargs
        assert len(params["messages"]) == 1
        assert params["messages"][0]["content"].endswith("Test prompt")
        assert params["max_completion_tokens"] == 4000
        assert "temperature" not in params

    @pytest.mark.asyncio
    async def test_empty_choices_yield_empty_content(self):
        adapter = OpenAIAdapter("test-key")
        response = openai_response()
        response.choices = []
        mock_openai_client(adapter, return_value=response)

        result = await adapter.generate("Test prompt", TaskType.WRITING)

        assert result.content == ""

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self):
        adapter = OpenAIAdapter("test-key")
        mock_openai_client(adapter, side_effect=Exception("API Error"))

        with pytest.raises(ProviderError, match="OpenAI API Error: API Error"):
            await adapter.generate("Test prompt", TaskType.WRITING)

    @pytest.mark.asyncio
    async def test_rate_limit_is_retryable(self):
        adapter = OpenAIAdapter("test-key")
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.RateLimitError(
            "Too many requests", response=httpx.Response(429, request=request), body=None
        )
        mock_openai_client(adapter, side_effect=error)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate("Test prompt", TaskType.WRITING)

        assert exc_info.value.kind == ErrorKind.RATE_LIMIT
        assert exc_info.value.retryable is True

    def test_connection_error_is_classified(self):
        adapter = OpenAIAdapter("test-key")
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

        assert adapter.classify_error(openai.APIConnectionError(request=request)) == ErrorKind.CONNECTION
        assert adapter.classify_error(openai.APITimeoutError(request=request)) == ErrorKind.TIMEOUT


# =============================================================================
# Local
# =============================================================================

class TestLocalModelAdapter:
    """Test the local adapter with its HTTP call mocked out."""

    @pytest.mark.asyncio
    async def test_generate_with_ollama(self):
        adapter = LocalModelAdapter("http://localhost:11434/")
        adapter._post = AsyncMock(return_value={
            "response": "Local answer",
            "prompt_eval_count": 12,
            "eval_count": 8,
            "done": True,
        })

        result = await adapter.generate("Test prompt", TaskType.OUTLINE)

        assert result.content == "Local answer"
        assert result.usage.total_tokens == 20
        assert result.cost == 0.0
        assert result.provider == "local"
        path, payload = adapter._post.call_args.args
        assert path == "/api/generate"
        assert payload["options"]["num_predict"] == 4000
        assert "writing coach" in payload["system"]
        assert adapter.endpoint == "http://localhost:11434"

    @pytest.mark.asyncio
    async def test_generate_openai_compatible(self):
        adapter = LocalModelAdapter("http://localhost:8000", api_type="openai-compatible")
        adapter._post = AsyncMock(return_value={
            "id": "cmpl-1",
            "choices": [{"message": {"content": "Hi"}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 3, "completion_tokens": 1},
        })

        result = await adapter.generate("Hello", TaskType.GENERAL)

        assert result.content == "Hi"
        assert adapter._post.call_args.args[0] == "/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_status_error_passes_through(self):
        adapter = LocalModelAdapter("http://localhost:11434")
        adapter._post = AsyncMock(side_effect=ProviderError(
            provider="local",
            message="status 503: loading model",
            kind=ErrorKind.SERVICE_UNAVAILABLE,
            display_name="Local",
        ))

        with pytest.raises(ProviderError, match="Local API Error: status 503") as exc_info:
            await adapter.generate("Hello", TaskType.GENERAL)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_connection_refused_is_retryable(self):
        adapter = LocalModelAdapter("http://localhost:11434")
        adapter._post = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(ProviderError) as exc_info:
            await adapter.generate("Hello", TaskType.GENERAL)

        assert exc_info.value.kind == ErrorKind.CONNECTION


# =============================================================================
# Cost and options
# =============================================================================

class TestCostEstimation:
    """Test cost estimation and option validation."""

    def test_estimate_cost_uses_four_chars_per_token(self):
        adapter = AnthropicAdapter("test-key")

        # 40 characters -> 10 tokens in, 10 tokens out
        assert adapter.estimate_cost("a" * 40) == pytest.approx(10 / 1000 * (0.003 + 0.015))

    def test_estimate_rounds_tokens_up(self):
        adapter = OpenAIAdapter("test-key")

        assert adapter.estimate_tokens("abcde") == 2

    def test_local_calls_are_free(self):
        adapter = LocalModelAdapter("http://localhost:11434")

        assert adapter.estimate_cost("a" * 4000) == 0.0

    def test_unknown_options_are_rejected(self):
        with pytest.raises(ValidationError):
            GenerationOptions(max_tokens=100, top_k=5)

    def test_invalid_max_tokens_rejected(self):
        with pytest.raises(ValidationError):
            GenerationOptions(max_tokens=0)
