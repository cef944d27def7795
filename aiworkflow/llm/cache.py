"""Short-lived response cache for the context-aware router.

Entries are keyed by request type, workflow step and the start of the
prompt, expire after a TTL, and are swept lazily whenever a new entry is
written.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from aiworkflow.llm.types import AIRequest, GenerationResult

# Characters of the prompt that take part in the cache key
CACHE_KEY_PROMPT_CHARS = 100


@dataclass
class CacheEntry:
    """A cached response entry."""

    response: GenerationResult
    timestamp: float


class ResponseCache:
    """TTL cache of generation results.

    Args:
        ttl_seconds: How long an entry stays valid
        clock: Time source in seconds, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache: dict[str, CacheEntry] = {}
        self._ttl = ttl_seconds
        self._clock = clock
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @staticmethod
    def key_for(request: AIRequest) -> str:
        """Build the cache key for a request."""
        step = request.metadata.workflow_step or ""
        return f"{request.type.value}-{step}-{request.prompt[:CACHE_KEY_PROMPT_CHARS]}"

    def get(self, key: str) -> GenerationResult | None:
        """Get a live entry, or None if missing or expired."""
        entry = self._cache.get(key)
        if entry is None or self._clock() - entry.timestamp >= self._ttl:
            self._misses += 1
            return None

        self._hits += 1
        return entry.response.model_copy(deep=True)

    def put(self, key: str, response: GenerationResult) -> None:
        """Store a response, then sweep expired entries."""
        self._cache[key] = CacheEntry(
            response=response.model_copy(deep=True),
            timestamp=self._clock(),
        )
        self.sweep()

    def sweep(self) -> int:
        """Remove expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [
            key for key, entry in self._cache.items()
            if now - entry.timestamp > self._ttl
        ]
        for key in expired:
            del self._cache[key]
        return len(expired)

    def clear(self) -> None:
        """Clear the cache."""
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Expired entries are only removed on the next ``put``, so ``entries``
        may include entries that ``get`` already treats as misses.
        """
        return {
            "entries": len(self._cache),
            "ttl_seconds": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
        }

    def __len__(self) -> int:
        return len(self._cache)
