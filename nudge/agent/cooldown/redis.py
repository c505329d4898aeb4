"""Redis implementation of CooldownStore."""

import math
from datetime import UTC, datetime

from redis.asyncio import Redis
from redis.exceptions import RedisError

from nudge.agent.cooldown.store import CooldownStore
from nudge.agent.errors import CooldownStoreUnavailableError
from nudge.agent.models import utc_now
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

# KEYS[1] record key
# ARGV[1] now (epoch ms), ARGV[2] cooldown (ms, 0 = none), ARGV[3] ttl (s, 0 = keep)
ACQUIRE_SCRIPT = """
local last = redis.call('GET', KEYS[1])
local now = tonumber(ARGV[1])
local cooldown = tonumber(ARGV[2])
if last and cooldown > 0 and (now - tonumber(last)) < cooldown then
  return 0
end
local ttl = tonumber(ARGV[3])
if ttl > 0 then
  redis.call('SET', KEYS[1], ARGV[1], 'EX', ttl)
else
  redis.call('SET', KEYS[1], ARGV[1])
end
return 1
"""

# KEYS[1] counter key
# ARGV[1] limit, ARGV[2] expiry (epoch s)
RESERVE_SCRIPT = """
local count = tonumber(redis.call('GET', KEYS[1]) or '0')
if count >= tonumber(ARGV[1]) then
  return 0
end
redis.call('INCR', KEYS[1])
redis.call('EXPIREAT', KEYS[1], ARGV[2])
return 1
"""

RELEASE_SCRIPT = """
local count = tonumber(redis.call('GET', KEYS[1]) or '0')
if count > 0 then
  redis.call('DECR', KEYS[1])
end
return count
"""


class RedisCooldownStore(CooldownStore):
    """Redis-backed CooldownStore.

    Key format: {prefix}:{cooldown key}
    Value: last-fired time as epoch milliseconds, or a slot count for
    daily-cap counters

    The acquire runs as one Lua script, so concurrent workers across
    processes cannot both pass the same cooldown.
    """

    def __init__(
        self,
        redis: Redis,
        key_prefix: str = "cooldown",
        retention_hours: float | None = None,
    ):
        """Initialize Redis cooldown store.

        Args:
            redis: Redis client instance
            key_prefix: Prefix for Redis keys
            retention_hours: How long records are kept after the last fire;
                never shorter than the cooldown itself. None keeps records.
        """
        self._redis = redis
        self._key_prefix = key_prefix
        self._retention_hours = retention_hours
        self._acquire = redis.register_script(ACQUIRE_SCRIPT)
        self._reserve = redis.register_script(RESERVE_SCRIPT)
        self._release = redis.register_script(RELEASE_SCRIPT)

    def _make_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    def _ttl_seconds(self, cooldown_hours: float | None) -> int:
        if self._retention_hours is None:
            return 0
        hours = max(self._retention_hours, cooldown_hours or 0)
        return math.ceil(hours * 3600)

    async def try_acquire(
        self,
        key: str,
        cooldown_hours: float | None,
        now: datetime | None = None,
    ) -> bool:
        now = now or utc_now()
        now_ms = int(now.timestamp() * 1000)
        cooldown_ms = int((cooldown_hours or 0) * 3600 * 1000)

        try:
            acquired = await self._acquire(
                keys=[self._make_key(key)],
                args=[now_ms, cooldown_ms, self._ttl_seconds(cooldown_hours)],
            )
        except RedisError as e:
            logger.error("cooldown_store_unreachable", key=key, error=str(e))
            raise CooldownStoreUnavailableError(f"Cooldown store unreachable: {e}") from e

        return int(acquired) == 1

    async def last_fired(self, key: str) -> datetime | None:
        try:
            value = await self._redis.get(self._make_key(key))
        except RedisError as e:
            raise CooldownStoreUnavailableError(f"Cooldown store unreachable: {e}") from e

        if value is None:
            return None
        value_str = value.decode() if isinstance(value, bytes) else value
        return datetime.fromtimestamp(int(value_str) / 1000, tz=UTC)

    async def try_reserve(
        self,
        key: str,
        limit: int,
        expires_at: datetime,
        now: datetime | None = None,
    ) -> bool:
        try:
            reserved = await self._reserve(
                keys=[self._make_key(key)],
                args=[limit, math.ceil(expires_at.timestamp())],
            )
        except RedisError as e:
            logger.error("cooldown_store_unreachable", key=key, error=str(e))
            raise CooldownStoreUnavailableError(f"Cooldown store unreachable: {e}") from e

        return int(reserved) == 1

    async def release(self, key: str) -> None:
        try:
            await self._release(keys=[self._make_key(key)], args=[])
        except RedisError as e:
            logger.error("cooldown_store_unreachable", key=key, error=str(e))
            raise CooldownStoreUnavailableError(f"Cooldown store unreachable: {e}") from e
