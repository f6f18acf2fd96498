"""In-memory TTL cache for LLM responses."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from resume_optimizer.clients.llm_client import LLMResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    response: LLMResponse
    timestamp: float


def make_cache_key(model: str, temperature: float, system_prompt: str, user_prompt: str) -> str:
    """Hash the four request dimensions that determine a response."""
    payload = json.dumps(
        [model, float(temperature), system_prompt or "", user_prompt],
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class LLMCache:
    """Insertion-ordered response cache with TTL expiry and a size bound.

    A single lock guards the store, so one instance can be shared between
    threads and between concurrent pipeline runs.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_entries: int = 1000,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.enabled = enabled
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_config(cls, config) -> LLMCache:
        return cls(
            ttl_seconds=config.ttl_seconds,
            max_entries=config.max_entries,
            enabled=config.enabled,
        )

    def get(self, key: str) -> LLMResponse | None:
        """Return the cached response, or None if missing or expired."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._clock() - entry.timestamp > self.ttl_seconds:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.response

    def put(self, key: str, response: LLMResponse) -> None:
        """Store a response, evicting the oldest entries when full."""
        if not self.enabled:
            return
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted cache entry %s", evicted[:12])
            self._entries[key] = CacheEntry(response=response, timestamp=self._clock())

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove all entries. Returns number of entries removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def cleanup(self) -> int:
        """Drop every expired entry. Returns number of entries removed."""
        with self._lock:
            now = self._clock()
            expired = [
                k for k, e in self._entries.items() if now - e.timestamp > self.ttl_seconds
            ]
            for k in expired:
                del self._entries[k]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "enabled": self.enabled,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
