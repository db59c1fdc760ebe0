"""Process-lifetime response cache shielding upstream APIs from repeated calls."""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class CacheEntry:
    payload: Any
    fetched_at: float


class ResponseCache:
    """Single-entry-per-key TTL cache.

    One instance is owned by the application and shared by all routes. Entries
    are only replaced by a successful refresh; a failed refresh leaves whatever
    was cached before and re-raises to the caller. Concurrent misses on the
    same key are not coalesced, the last writer wins.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.stats: Dict[str, Dict[str, int]] = {}
        self.logger = logger.bind(component="response_cache")

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def is_fresh(self, key: str, ttl_seconds: float) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() - entry.fetched_at < ttl_seconds

    async def get_or_refresh(
        self,
        key: str,
        ttl_seconds: float,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached payload for ``key`` or refresh it with ``fetch``."""
        counters = self.stats.setdefault(key, {"hits": 0, "misses": 0, "errors": 0})

        if self.is_fresh(key, ttl_seconds):
            counters["hits"] += 1
            return self._entries[key].payload

        counters["misses"] += 1
        try:
            payload = await fetch()
        except Exception as e:
            counters["errors"] += 1
            self.logger.warning("Cache refresh failed", key=key, error=str(e))
            raise

        self._entries[key] = CacheEntry(payload=payload, fetched_at=self._clock())
        self.logger.debug("Cache refreshed", key=key, ttl_seconds=ttl_seconds)
        return payload

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
