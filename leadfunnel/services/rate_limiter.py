from __future__ import annotations

import time
from typing import Awaitable, Callable, Dict, Optional, Protocol

from redis.asyncio import Redis

from leadfunnel.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

DEFAULT_MAX_ENTRIES = 1000


class RateLimitStore(Protocol):
    async def try_acquire(self, identifier: str, cooldown_seconds: float) -> bool:
        ...


class InMemoryRateLimitStore:
    """
    Process-local map of identifier -> last accepted timestamp.

    Each worker process holds its own map, so limits are not shared across
    instances. Stale entries are only purged once the map grows past
    ``max_entries``; the oldest half is then dropped.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self._clock = clock
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._last_seen)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._last_seen

    async def try_acquire(self, identifier: str, cooldown_seconds: float) -> bool:
        now = self._clock()
        last_seen = self._last_seen.get(identifier)

        if last_seen is not None and now - last_seen <= cooldown_seconds:
            return False

        self._last_seen[identifier] = now
        if len(self._last_seen) > self.max_entries:
            self._evict_oldest_half()
        return True

    def _evict_oldest_half(self) -> None:
        by_age = sorted(self._last_seen.items(), key=lambda item: item[1])
        for identifier, _ in by_age[: len(by_age) // 2]:
            del self._last_seen[identifier]
        logger.debug("rate_limit.evicted", remaining=len(self._last_seen))


class RedisRateLimitStore:
    """Shared cooldown store: one ``SET NX PX`` per accepted submission."""

    def __init__(
        self,
        client_factory: Callable[[], Awaitable[Redis]],
        prefix: str = "leadfunnel:cooldown",
    ):
        self._client_factory = client_factory
        self._client: Optional[Redis] = None
        self.prefix = prefix

    async def try_acquire(self, identifier: str, cooldown_seconds: float) -> bool:
        key = f"{self.prefix}:{identifier}"
        try:
            if self._client is None:
                self._client = await self._client_factory()
            acquired = await self._client.set(
                key,
                str(time.time()),
                nx=True,
                px=max(1, int(cooldown_seconds * 1000)),
            )
            return bool(acquired)
        except Exception as e:
            logger.error("rate_limit.error", error=str(e), client_id=identifier[:50])
            # Fail open when Redis is unavailable
            return True


class RateLimiter:
    """Per-client cooldown gate in front of the submission pipeline."""

    def __init__(self, store: RateLimitStore, cooldown_seconds: float):
        self.store = store
        self.cooldown_seconds = cooldown_seconds

    async def allow(self, identifier: str) -> bool:
        allowed = await self.store.try_acquire(identifier, self.cooldown_seconds)
        if not allowed:
            logger.warning(
                "rate_limit.exceeded",
                client_id=identifier[:50],
                cooldown_seconds=self.cooldown_seconds,
            )
        return allowed
