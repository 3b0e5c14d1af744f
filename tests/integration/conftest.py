import re
from typing import Dict, List

import fakeredis
import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from estate_iam.adapter.services.bcrypt_secret_hasher import BcryptSecretHasher
from estate_iam.adapter.services.redis_ephemeral_store import RedisEphemeralStore
from estate_iam.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from estate_iam.app.services.email_dispatcher import IEmailDispatcher
from estate_iam.depends import (
    get_email_dispatcher,
    get_ephemeral_store,
    get_secret_hasher,
    get_unit_of_work,
)

OTP_PATTERN = re.compile(r"Your OTP is: (\d{6})")
RESET_TOKEN_PATTERN = re.compile(r"/reset-password/([0-9a-f]{64})")

DEFAULT_PASSWORD = "SecurePass123"


class RecordingEmailDispatcher(IEmailDispatcher):
    """Keeps every message in memory instead of sending it"""

    def __init__(self):
        self.outbox: List[Dict[str, str]] = []
        self.fail = False

    async def send(self, to: str, subject: str, html: str) -> bool:
        if self.fail:
            return False
        self.outbox.append({"to": to, "subject": subject, "html": html})
        return True

    def _last_match(self, to: str, pattern: re.Pattern) -> str:
        for message in reversed(self.outbox):
            if message["to"] == to:
                match = pattern.search(message["html"])
                if match:
                    return match.group(1)
        raise AssertionError(f"No matching email sent to {to}")

    def last_otp(self, to: str) -> str:
        return self._last_match(to, OTP_PATTERN)

    def last_reset_token(self, to: str) -> str:
        return self._last_match(to, RESET_TOKEN_PATTERN)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


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


@pytest.fixture
def outbox():
    return RecordingEmailDispatcher()


@pytest_asyncio.fixture
async def client(db_session, ephemeral_store, outbox):
    from estate_iam.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)
    hasher = BcryptSecretHasher(rounds=4)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_ephemeral_store] = lambda: ephemeral_store
    app.dependency_overrides[get_email_dispatcher] = lambda: outbox
    app.dependency_overrides[get_secret_hasher] = lambda: hasher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client: AsyncClient, outbox: RecordingEmailDispatcher):
    """Register an account through the OTP flow and return the session payload"""

    async def _register(
        username: str,
        email: str,
        password: str = DEFAULT_PASSWORD,
        role: str = "User",
    ) -> dict:
        response = await client.post(
            "/auth/register/otp", json={"email": email, "username": username, "role": role}
        )
        assert response.status_code == 200, response.text

        response = await client.post(
            "/auth/register/verify",
            json={
                "email": email,
                "otp": outbox.last_otp(email.lower()),
                "username": username,
                "password": password,
                "role": role,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register
