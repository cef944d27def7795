"""Interaction window and learning statistics for the context-aware router."""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Iterator

from aiworkflow.llm.types import ContextEntry


@dataclass
class ProviderLearningStats:
    """Outcome statistics learned for one provider."""

    success_count: int = 0
    failure_count: int = 0
    total_response_time: float = 0.0
    step_preferences: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count

    def success_rate(self, default: float = 0.0) -> float:
        """Fraction of successful outcomes, or ``default`` without data."""
        if self.total == 0:
            return default
        return self.success_count / self.total

    @property
    def average_response_time(self) -> float:
        if self.success_count == 0:
            return 0.0
        return self.total_response_time / self.success_count

    def step_score(self, step: str) -> int:
        return self.step_preferences.get(step, 0)

    def record(self, success: bool, step: str | None = None, response_time: float | None = None) -> None:
        """Apply one outcome: counters, response time and step preference."""
        if success:
            self.success_count += 1
            if response_time:
                self.total_response_time += response_time
        else:
            self.failure_count += 1

        if step:
            adjustment = 1 if success else -1
            self.step_preferences[step] = self.step_preferences.get(step, 0) + adjustment


class ContextWindow:
    """FIFO-bounded record of the most recent interactions.

    Appending past ``size`` evicts the oldest entry.
    """

    def __init__(self, size: int = 10):
        if size < 1:
            raise ValueError("Context window size must be at least 1")
        self._entries: deque[ContextEntry] = deque(maxlen=size)

    @property
    def size(self) -> int:
        return self._entries.maxlen or 0

    def append(self, entry: ContextEntry) -> None:
        self._entries.append(entry)

    def entries(self) -> list[ContextEntry]:
        """Copy of the window, oldest first."""
        return list(self._entries)

    def recent(self, count: int) -> list[ContextEntry]:
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def recent_failures(self, lookback: int) -> set[str]:
        """Providers with failure feedback among the last ``lookback`` entries."""
        return {entry.provider for entry in self.recent(lookback) if entry.failed}

    def successful_responses(self, limit: int) -> list[ContextEntry]:
        """The last ``limit`` entries that carry a response and no failure."""
        successful = [
            entry for entry in self._entries
            if entry.response is not None and not entry.failed
        ]
        return successful[-limit:] if limit > 0 else []

    def step_transitions(self, step: str) -> Counter[str]:
        """Count the steps that directly followed ``step`` in the window."""
        transitions: Counter[str] = Counter()
        entries = list(self._entries)
        for current, following in zip(entries, entries[1:]):
            if current.workflow_step == step and following.workflow_step:
                transitions[following.workflow_step] += 1
        return transitions

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ContextEntry]:
        return iter(list(self._entries))
