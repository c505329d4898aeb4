"""In-memory implementation of CooldownStore."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta

from nudge.agent.cooldown.store import CooldownStore
from nudge.agent.models import utc_now


class InMemoryCooldownStore(CooldownStore):
    """In-memory CooldownStore for testing and single-process deployments.

    A single asyncio lock makes check-and-stamp and check-and-increment
    atomic across concurrent event handling in one event loop.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._last_fired: dict[str, datetime] = {}
        self._counters: dict[str, tuple[int, datetime]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def try_acquire(
        self,
        key: str,
        cooldown_hours: float | None,
        now: datetime | None = None,
    ) -> bool:
        now = now or self._clock()
        async with self._lock:
            last = self._last_fired.get(key)
            if last is not None and cooldown_hours:
                if now - last < timedelta(hours=cooldown_hours):
                    return False
            self._last_fired[key] = now
            return True

    async def last_fired(self, key: str) -> datetime | None:
        return self._last_fired.get(key)

    async def try_reserve(
        self,
        key: str,
        limit: int,
        expires_at: datetime,
        now: datetime | None = None,
    ) -> bool:
        now = now or self._clock()
        async with self._lock:
            self._drop_expired(now)
            count, expiry = self._counters.get(key, (0, expires_at))
            if count >= limit:
                return False
            self._counters[key] = (count + 1, expiry)
            return True

    async def release(self, key: str) -> None:
        async with self._lock:
            entry = self._counters.get(key)
            if entry is not None and entry[0] > 0:
                self._counters[key] = (entry[0] - 1, entry[1])

    async def reserved(self, key: str) -> int:
        """Slots currently taken under `key`."""
        entry = self._counters.get(key)
        return entry[0] if entry else 0

    def _drop_expired(self, now: datetime) -> None:
        expired = [key for key, (_, expiry) in self._counters.items() if expiry <= now]
        for key in expired:
            del self._counters[key]
