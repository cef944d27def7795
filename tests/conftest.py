"""Shared fixtures for routing tests."""

from __future__ import annotations

import pytest

from aiworkflow.llm.adapters.base import ProviderAdapter
from aiworkflow.llm.types import Completion, GenerationOptions


class FakeProvider(ProviderAdapter):
    """In-memory provider that records prompts and returns canned content.

    Raising ``error`` from ``complete`` goes through the real
    ``ProviderAdapter.generate`` wrapping and classification.
    """

    def __init__(
        self,
        name: str,
        content: str = "ok",
        error: Exception | None = None,
        available: bool = True,
        prompt_tokens: int = 10,
        completion_tokens: int = 20,
    ):
        self.name = name
        self.display_name = name.capitalize()
        super().__init__("test-key", model=f"{name}-model")
        self.content = content
        self.error = error
        self.available = available
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.prompts: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def complete(
        self,
        prompt: str,
        system_prompt: str,
        options: GenerationOptions,
    ) -> Completion:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return Completion(
            content=self.content,
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
        )

    def is_available(self) -> bool:
        return self.available


@pytest.fixture
def make_provider():
    """Factory for fake providers."""
    return FakeProvider


@pytest.fixture
def anthropic_provider():
    return FakeProvider("anthropic", content="Anthropic response")


@pytest.fixture
def openai_provider():
    return FakeProvider("openai", content="OpenAI response")
