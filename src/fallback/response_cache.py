"""
Bounded TTL cache for LLM fallback answers.

Keys combine the normalized message with a coarse tier label
("frustrated" / "neutral"). Oldest entries are evicted first once the
cache is full. Correctness never depends on a hit.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from src.config import CacheConfig, settings
from src.utils import normalize_message

logger = logging.getLogger(__name__)

FRUSTRATED_TIER = "frustrated"
NEUTRAL_TIER = "neutral"


@dataclass(frozen=True)
class CacheEntry:
    answer: str
    stored_at: float


class ResponseCache:
    """Maps (normalized message, tier) to a previously generated answer."""

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or settings.cache
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @staticmethod
    def make_key(message: str, tier: str) -> str:
        return f"{normalize_message(message)}_{tier}"

    def get(self, message: str, tier: str) -> Optional[str]:
        key = self.make_key(message, tier)
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() - entry.stored_at > self._config.ttl_sec:
            del self._entries[key]
            self._misses += 1
            return None
        self._hits += 1
        return entry.answer

    def contains(self, message: str, tier: str) -> bool:
        """Check for a live entry without touching hit/miss counters."""
        entry = self._entries.get(self.make_key(message, tier))
        return entry is not None and self._clock() - entry.stored_at <= self._config.ttl_sec

    def put(self, message: str, tier: str, answer: str) -> None:
        key = self.make_key(message, tier)
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(answer=answer, stored_at=self._clock())
        while len(self._entries) > self._config.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("Evicted cached answer %r", evicted)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict:
        lookups = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_entries": self._config.max_entries,
            "ttl_sec": self._config.ttl_sec,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "hit_rate": round(self._hits / lookups, 3) if lookups else 0.0,
        }
