"""
Cached aggregate repository

One read/invalidate path for every aggregate kind instead of a copy per
role. Keys are ``<kind>:<id>`` for entities and ``<kind>:all`` for the
collection; any write wipes both.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from estate_iam.app.services.cache_coherent_reader import CacheCoherentReader, CacheRead


def entity_key(kind: str, entity_id: Any) -> str:
    return f"{kind}:{entity_id}"


def collection_key(kind: str) -> str:
    return f"{kind}:all"


class CachedAggregate:
    def __init__(
        self,
        kind: str,
        reader: CacheCoherentReader,
        entity_ttl: int = 30 * 60,
        collection_ttl: int = 60 * 60,
    ):
        self.kind = kind
        self.reader = reader
        self.entity_ttl = entity_ttl
        self.collection_ttl = collection_ttl

    async def get(
        self,
        entity_id: Any,
        loader: Callable[[], Awaitable[Optional[Dict[str, Any]]]],
    ) -> CacheRead[Dict[str, Any]]:
        return await self.reader.read(entity_key(self.kind, entity_id), loader, self.entity_ttl)

    async def list(
        self,
        loader: Callable[[], Awaitable[List[Dict[str, Any]]]],
    ) -> CacheRead[List[Dict[str, Any]]]:
        return await self.reader.read(collection_key(self.kind), loader, self.collection_ttl)

    async def invalidate(self, entity_id: Optional[Any] = None) -> None:
        """Wipe the collection key and, if given, the entity key"""
        keys = [collection_key(self.kind)]
        if entity_id is not None:
            keys.insert(0, entity_key(self.kind, entity_id))
        await self.reader.invalidate(*keys)
