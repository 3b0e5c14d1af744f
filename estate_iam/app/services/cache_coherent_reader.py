"""
Read-through cache in front of the authoritative store.

Reads check the ephemeral store first and fall back to a loader; writers
call ``invalidate`` with every key that could hold a stale view before
they return. Concurrent misses may each run the loader.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from estate_iam.app.services.ephemeral_store import IEphemeralStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheRead(Generic[T]):
    value: Optional[T]
    hit: bool


def _is_empty(value: Any) -> bool:
    return value is None or value == [] or value == {}


class CacheCoherentReader:
    def __init__(self, store: IEphemeralStore):
        self.store = store

    async def read(
        self,
        key: str,
        loader: Callable[[], Awaitable[Optional[Any]]],
        ttl: int,
    ) -> CacheRead[Any]:
        """
        Return the cached JSON document for ``key``, loading it on a miss.

        Args:
            key: Cache key (``<kind>:<id>`` or ``<kind>:all``)
            loader: Coroutine factory returning a JSON-serializable value
            ttl: Seconds to keep a loaded value

        Returns:
            CacheRead with the value and whether it came from the cache
        """
        cached = await self.store.get(key)
        if cached is not None:
            try:
                return CacheRead(value=json.loads(cached), hit=True)
            except json.JSONDecodeError:
                logger.warning(f"Discarding undecodable cache entry '{key}'")
                await self.store.delete(key)

        value = await loader()
        if not _is_empty(value):
            await self.store.set(key, json.dumps(value, default=str), ttl)
        return CacheRead(value=value, hit=False)

    async def invalidate(self, *keys: str) -> None:
        """Delete every key unconditionally; must complete before the write returns"""
        if keys:
            await self.store.delete(*keys)
            logger.debug(f"Invalidated cache keys: {', '.join(keys)}")
