"""
Redis implementation of the ephemeral store.

Failed-attempt counters are updated by a Lua script so that the increment,
the timestamp and the conditional expiry are applied as one step inside
Redis. Two concurrent failures for the same identifier are both counted.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from estate_iam.app.services.ephemeral_store import IEphemeralStore
from estate_iam.app.services.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# A counter whose window has already elapsed is discarded before counting,
# whether or not Redis has evicted it yet.
#
# KEYS[1]: counter hash key (failedAttempts:<identifier>)
# ARGV[1]: now (epoch seconds)
# ARGV[2]: lockout threshold
# ARGV[3]: lockout ttl in seconds
# ARGV[4]: rolling ttl in seconds
RECORD_FAILURE_LUA = """
local now = tonumber(ARGV[1])
local threshold = tonumber(ARGV[2])
local last = tonumber(redis.call("HGET", KEYS[1], "lastAttempt"))
if last then
    local prior = tonumber(redis.call("HGET", KEYS[1], "count")) or 0
    local window = tonumber(ARGV[4])
    if prior >= threshold then
        window = tonumber(ARGV[3])
    end
    if now - last >= window then
        redis.call("DEL", KEYS[1])
    end
end
local count = redis.call("HINCRBY", KEYS[1], "count", 1)
redis.call("HSET", KEYS[1], "lastAttempt", ARGV[1])
if count >= threshold then
    redis.call("EXPIRE", KEYS[1], tonumber(ARGV[3]))
else
    redis.call("EXPIRE", KEYS[1], tonumber(ARGV[4]))
end
return count
"""


@contextmanager
def _translate_errors(operation: str, key: str = ""):
    try:
        yield
    except RedisError as e:
        logger.error(f"Redis {operation} failed for key '{key}': {type(e).__name__}: {e}")
        raise StoreUnavailableError("redis", operation, str(e)) from e


class RedisEphemeralStore(IEphemeralStore):
    """Ephemeral store over an async Redis client (decode_responses=True)"""

    def __init__(self, redis_client: Redis):
        self._redis = redis_client
        self._record_failure = redis_client.register_script(RECORD_FAILURE_LUA)

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 2.0) -> "RedisEphemeralStore":
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        with _translate_errors("get", key):
            return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        with _translate_errors("set", key):
            if ttl is not None:
                await self._redis.set(key, value, ex=ttl)
            else:
                await self._redis.set(key, value)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with _translate_errors("delete", ",".join(keys)):
            return await self._redis.delete(*keys)

    async def hgetall(self, key: str) -> Dict[str, str]:
        with _translate_errors("hgetall", key):
            return await self._redis.hgetall(key)

    async def ttl(self, key: str) -> Optional[int]:
        with _translate_errors("ttl", key):
            remaining = await self._redis.ttl(key)
        # Redis returns -2 if the key doesn't exist, -1 if it has no expiry
        if remaining < 0:
            return None
        return remaining

    async def record_failure(
        self,
        key: str,
        now: float,
        threshold: int,
        lockout_ttl: int,
        rolling_ttl: int,
    ) -> int:
        with _translate_errors("record_failure", key):
            count = await self._record_failure(
                keys=[key], args=[now, threshold, lockout_ttl, rolling_ttl]
            )
        return int(count)

    async def ping(self) -> bool:
        with _translate_errors("ping"):
            return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()
