from unittest.mock import AsyncMock, MagicMock

import fakeredis
import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from estate_iam.adapter.services.bcrypt_secret_hasher import BcryptSecretHasher
from estate_iam.adapter.services.redis_ephemeral_store import RedisEphemeralStore


class FakeClock:
    """Epoch-seconds clock that only moves when told to"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.accounts = MagicMock()
    uow.accounts.get_by_id = AsyncMock(return_value=None)
    uow.accounts.get_by_email = AsyncMock(return_value=None)
    uow.accounts.get_by_username = AsyncMock(return_value=None)
    uow.accounts.find_conflict = AsyncMock(return_value=None)
    uow.accounts.get_by_reset_token_hash = AsyncMock(return_value=None)
    uow.accounts.redeem_reset_ticket = AsyncMock(return_value=True)
    uow.accounts.list_all = AsyncMock(return_value=[])
    uow.accounts.create = AsyncMock(side_effect=lambda account: account)
    uow.accounts.update = AsyncMock(side_effect=lambda account: account)
    uow.accounts.delete = AsyncMock()

    uow.otp_challenges = MagicMock()
    uow.otp_challenges.get_by_email = AsyncMock(return_value=None)
    uow.otp_challenges.upsert = AsyncMock(side_effect=lambda challenge: challenge)
    uow.otp_challenges.delete = AsyncMock(return_value=True)
    return uow


@pytest.fixture
def mock_accounts_cache():
    cache = MagicMock()
    cache.invalidate = AsyncMock()
    return cache


@pytest.fixture
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return BcryptSecretHasher(rounds=4)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def redis_client(redis_server):
    client = FakeRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def ephemeral_store(redis_client):
    return RedisEphemeralStore(redis_client)
