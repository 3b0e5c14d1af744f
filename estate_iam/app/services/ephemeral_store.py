from abc import ABC, abstractmethod
from typing import Dict, Optional


class IEphemeralStore(ABC):
    """
    Shared key-value store backing the lockout counters and the aggregate cache.

    Implementations raise ``StoreUnavailableError`` for every connection
    failure or timeout; they never return a default in place of an error.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys; returns how many existed"""
        pass

    @abstractmethod
    async def hgetall(self, key: str) -> Dict[str, str]:
        pass

    @abstractmethod
    async def ttl(self, key: str) -> Optional[int]:
        """Seconds until expiry, None if the key is missing or never expires"""
        pass

    @abstractmethod
    async def record_failure(
        self,
        key: str,
        now: float,
        threshold: int,
        lockout_ttl: int,
        rolling_ttl: int,
    ) -> int:
        """
        Atomically bump ``count``, stamp ``lastAttempt`` and set the expiry.

        Expiry is ``lockout_ttl`` once the new count reaches ``threshold``,
        ``rolling_ttl`` otherwise. A counter whose own window has elapsed
        by ``now`` restarts from zero. Returns the post-increment count.
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass
