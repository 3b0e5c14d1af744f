from datetime import timedelta

import pytest
from httpx import AsyncClient

from estate_iam.domain.base import utcnow
from estate_iam.domain.entities import OtpChallenge
from tests.utils.http import auth_header


async def request_otp(client, email="new@example.com", username="newbie", role="User"):
    return await client.post(
        "/auth/register/otp", json={"email": email, "username": username, "role": role}
    )


async def verify_otp(client, otp, email="new@example.com", username="newbie", **extra):
    payload = {
        "email": email,
        "otp": otp,
        "username": username,
        "password": "SecurePass123",
        "role": "User",
    }
    payload.update(extra)
    return await client.post("/auth/register/verify", json=payload)


@pytest.mark.asyncio
async def test_register_with_otp(client: AsyncClient, outbox):
    """Request a code, verify it, and get a working session for the new account"""
    response = await request_otp(client)

    assert response.status_code == 200
    assert response.json()["expires_in_seconds"] == 600
    assert outbox.outbox[-1]["subject"] == "Your OTP for Registration"
    assert "valid for 10 minutes" in outbox.outbox[-1]["html"]

    response = await verify_otp(client, outbox.last_otp("new@example.com"), phone="5551234567")

    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "Bearer"
    assert data["account"]["username"] == "newbie"
    assert data["account"]["email"] == "new@example.com"
    assert data["account"]["role"] == "User"
    assert data["account"]["phone"] == "5551234567"
    assert "password_hash" not in data["account"]
    assert "access_token" in response.cookies

    me = await client.get("/me", headers=auth_header(data))
    assert me.status_code == 200
    assert me.json()["account"]["id"] == data["account"]["id"]


@pytest.mark.asyncio
async def test_code_is_single_use(client: AsyncClient, outbox):
    await request_otp(client)
    otp = outbox.last_otp("new@example.com")

    first = await verify_otp(client, otp)
    second = await verify_otp(client, otp, email="new@example.com", username="newbie2")

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json()["error"]["code"] == "OTP_NOT_FOUND"


@pytest.mark.asyncio
async def test_wrong_code_is_rejected(client: AsyncClient, outbox):
    await request_otp(client)
    otp = outbox.last_otp("new@example.com")
    wrong = "100000" if otp != "100000" else "100001"

    response = await verify_otp(client, wrong)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_OTP"

    # The right code still works afterwards
    assert (await verify_otp(client, otp)).status_code == 201


@pytest.mark.asyncio
async def test_expired_code_is_rejected_and_removed(client: AsyncClient, outbox, db_session):
    await request_otp(client)
    otp = outbox.last_otp("new@example.com")

    challenge = await db_session.get(OtpChallenge, "new@example.com")
    challenge.expires_at = utcnow() - timedelta(seconds=1)
    db_session.add(challenge)
    await db_session.commit()

    response = await verify_otp(client, otp)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "OTP_EXPIRED"

    response = await verify_otp(client, otp)
    assert response.json()["error"]["code"] == "OTP_NOT_FOUND"


@pytest.mark.asyncio
async def test_new_request_replaces_previous_code(client: AsyncClient, outbox):
    await request_otp(client)
    first = outbox.last_otp("new@example.com")
    await request_otp(client)
    second = outbox.last_otp("new@example.com")

    if first != second:
        response = await verify_otp(client, first)
        assert response.json()["error"]["code"] == "INVALID_OTP"

    assert (await verify_otp(client, second)).status_code == 201


@pytest.mark.asyncio
async def test_taken_email_or_username_is_rejected(client: AsyncClient, register):
    await register("alice", "alice@example.com")

    by_email = await request_otp(client, email="ALICE@example.com", username="someone")
    by_username = await request_otp(client, email="other@example.com", username="alice")

    assert by_email.status_code == 409
    assert by_email.json()["error"]["code"] == "ACCOUNT_ALREADY_EXISTS"
    assert by_username.status_code == 409


@pytest.mark.asyncio
async def test_dispatch_failure_is_reported(client: AsyncClient, outbox):
    outbox.fail = True

    response = await request_otp(client)

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "EMAIL_DISPATCH_FAILED"


@pytest.mark.asyncio
async def test_malformed_email_is_a_validation_error(client: AsyncClient):
    response = await request_otp(client, email="not-an-email")

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["fields"][0]["field"] == "email"


@pytest.mark.asyncio
async def test_short_password_is_rejected(client: AsyncClient, outbox):
    await request_otp(client)

    response = await verify_otp(
        client, outbox.last_otp("new@example.com"), password="short"
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
