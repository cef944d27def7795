"""Provider adapters for different LLM backends."""

from aiworkflow.llm.adapters.base import ProviderAdapter
from aiworkflow.llm.adapters.openai_adapter import OpenAIAdapter
from aiworkflow.llm.adapters.anthropic_adapter import AnthropicAdapter
from aiworkflow.llm.adapters.local_adapter import LocalModelAdapter

__all__ = [
    "ProviderAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "LocalModelAdapter",
]
