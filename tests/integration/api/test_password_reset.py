from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlmodel import select

from estate_iam.domain.base import utcnow
from estate_iam.domain.entities import Account


async def forgot_password(client, identifier):
    return await client.post("/auth/forgot-password", json={"username_or_email": identifier})


async def reset_password(client, token, new_password="NewSecurePass1"):
    return await client.put(
        "/auth/reset-password", json={"reset_token": token, "new_password": new_password}
    )


async def login(client, identifier, password):
    return await client.post(
        "/auth/login", json={"username_or_email": identifier, "password": password}
    )


@pytest.mark.asyncio
async def test_reset_password_flow(client: AsyncClient, register, outbox, db_session):
    await register("alice", "alice@example.com")

    response = await forgot_password(client, "alice")
    assert response.status_code == 200
    assert outbox.outbox[-1]["subject"] == "Password Reset Request"
    token = outbox.last_reset_token("alice@example.com")

    # Only the digest is stored
    account = (
        await db_session.exec(select(Account).where(Account.username == "alice"))
    ).one()
    assert account.password_reset_token_hash != token
    assert account.password_reset_expires_at > utcnow() + timedelta(minutes=59)

    response = await reset_password(client, token)
    assert response.status_code == 200
    assert response.json()["status"] == "success"

    assert (await login(client, "alice", "NewSecurePass1")).status_code == 200
    assert (await login(client, "alice@example.com", "SecurePass123")).status_code == 401


@pytest.mark.asyncio
async def test_reset_ticket_is_single_use(client: AsyncClient, register, outbox):
    await register("alice", "alice@example.com")
    await forgot_password(client, "alice@example.com")
    token = outbox.last_reset_token("alice@example.com")

    first = await reset_password(client, token)
    second = await reset_password(client, token, "AnotherPass123")

    assert first.status_code == 200
    assert second.status_code == 401
    assert second.json()["error"]["code"] == "INVALID_RESET_TOKEN"
    assert (await login(client, "alice", "NewSecurePass1")).status_code == 200


@pytest.mark.asyncio
async def test_newer_ticket_replaces_older(client: AsyncClient, register, outbox):
    await register("alice", "alice@example.com")
    await forgot_password(client, "alice")
    old_token = outbox.last_reset_token("alice@example.com")
    await forgot_password(client, "alice")
    new_token = outbox.last_reset_token("alice@example.com")

    assert (await reset_password(client, old_token)).status_code == 401
    assert (await reset_password(client, new_token)).status_code == 200


@pytest.mark.asyncio
async def test_expired_ticket_is_rejected(client: AsyncClient, register, outbox, db_session):
    await register("alice", "alice@example.com")
    await forgot_password(client, "alice")
    token = outbox.last_reset_token("alice@example.com")

    account = (
        await db_session.exec(select(Account).where(Account.username == "alice"))
    ).one()
    account.password_reset_expires_at = utcnow() - timedelta(seconds=1)
    db_session.add(account)
    await db_session.commit()

    response = await reset_password(client, token)

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_unknown_ticket_is_rejected(client: AsyncClient):
    response = await reset_password(client, "0" * 64)

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_RESET_TOKEN"


@pytest.mark.asyncio
async def test_short_new_password_is_rejected(client: AsyncClient, register, outbox):
    await register("alice", "alice@example.com")
    await forgot_password(client, "alice")
    token = outbox.last_reset_token("alice@example.com")

    response = await reset_password(client, token, "short")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PASSWORD"

    # The ticket survives a rejected password
    assert (await reset_password(client, token)).status_code == 200


@pytest.mark.asyncio
async def test_camel_case_payload_is_accepted(client: AsyncClient, register, outbox):
    await register("alice", "alice@example.com")
    await client.post("/auth/forgot-password", json={"usernameOrEmail": "alice"})
    token = outbox.last_reset_token("alice@example.com")

    response = await client.put(
        "/auth/reset-password", json={"resetToken": token, "newPassword": "NewSecurePass1"}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_forgot_password_refused_while_locked_out(client: AsyncClient, register, outbox):
    await register("alice", "alice@example.com")
    for _ in range(3):
        await login(client, "alice", "WrongPass123")
    sent_before = len(outbox.outbox)

    response = await client.post("/auth/forgot-password", json={"usernameOrEmail": "alice"})

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "TOO_MANY_ATTEMPTS"
    assert 10790 <= int(response.headers["Retry-After"]) <= 10800
    assert len(outbox.outbox) == sent_before


@pytest.mark.asyncio
async def test_forgot_password_for_unknown_account(client: AsyncClient, outbox):
    response = await forgot_password(client, "ghost@example.com")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ACCOUNT_NOT_FOUND"
    assert outbox.outbox == []
