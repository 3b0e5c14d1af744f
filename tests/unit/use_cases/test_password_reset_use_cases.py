from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from estate_iam.app.use_cases.auth import (
    ConfirmPasswordResetUseCase,
    RequestPasswordResetUseCase,
)
from estate_iam.domain.entities import Account
from estate_iam.libs.result import Error, Return

NOW = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def account():
    return Account(
        id=uuid4(), username="alice", email="alice@example.com", password_hash="old-hash"
    )


@pytest.fixture
def email_dispatcher():
    dispatcher = MagicMock()
    dispatcher.send = AsyncMock(return_value=True)
    return dispatcher


@pytest.fixture
def abuse_guard():
    guard = MagicMock()
    guard.check_locked = AsyncMock(return_value=Return.ok(None))
    return guard


@pytest.fixture
def request_use_case(mock_uow, hasher, email_dispatcher, abuse_guard, mock_accounts_cache):
    return RequestPasswordResetUseCase(
        mock_uow,
        hasher,
        email_dispatcher,
        abuse_guard,
        mock_accounts_cache,
        reset_url_base="https://estate.example.com/reset-password/",
        clock=lambda: NOW,
    )


@pytest.fixture
def confirm_use_case(mock_uow, hasher, mock_accounts_cache):
    return ConfirmPasswordResetUseCase(mock_uow, hasher, mock_accounts_cache, clock=lambda: NOW)


# ============================================================================
# Request
# ============================================================================


@pytest.mark.asyncio
async def test_request_reset_stores_digest_and_emails_link(
    request_use_case, mock_uow, hasher, email_dispatcher, account, mock_accounts_cache
):
    mock_uow.accounts.get_by_username.return_value = account

    result = await request_use_case.execute("alice")

    assert result.is_ok()
    assert result.value.status == "sent"

    to, subject, html = email_dispatcher.send.call_args.args
    assert to == "alice@example.com"
    assert subject == "Password Reset Request"
    token = html.split("https://estate.example.com/reset-password/")[1][:64]

    assert account.password_reset_token_hash == hasher.digest(token)
    assert account.password_reset_expires_at == NOW + timedelta(hours=1)
    assert token not in account.password_reset_token_hash
    mock_uow.commit.assert_awaited_once()
    mock_accounts_cache.invalidate.assert_awaited_once_with(account.id)


@pytest.mark.asyncio
async def test_request_reset_for_unknown_account(request_use_case, email_dispatcher):
    result = await request_use_case.execute("ghost@example.com")

    assert result.is_err()
    assert result.error.code == "ACCOUNT_NOT_FOUND"
    email_dispatcher.send.assert_not_called()


@pytest.mark.asyncio
async def test_request_reset_replaces_previous_ticket(request_use_case, mock_uow, account):
    mock_uow.accounts.get_by_username.return_value = account

    await request_use_case.execute("alice")
    first = account.password_reset_token_hash
    await request_use_case.execute("alice")

    assert account.password_reset_token_hash != first


@pytest.mark.asyncio
async def test_request_reset_reports_dispatch_failure(
    request_use_case, mock_uow, account, email_dispatcher
):
    mock_uow.accounts.get_by_email.return_value = account
    email_dispatcher.send.return_value = False

    result = await request_use_case.execute("alice@example.com")

    assert result.is_err()
    assert result.error.code == "EMAIL_DISPATCH_FAILED"


@pytest.mark.asyncio
async def test_request_reset_refused_while_identifier_locked(
    request_use_case, mock_uow, account, abuse_guard, email_dispatcher
):
    mock_uow.accounts.get_by_username.return_value = account
    abuse_guard.check_locked.return_value = Return.err(
        Error(
            "TOO_MANY_ATTEMPTS",
            "Too many attempts. Try again in 02:59:57.",
            {"time_left": "02:59:57", "retry_after_seconds": 10797},
        )
    )

    result = await request_use_case.execute("alice")

    assert result.is_err()
    assert result.error.code == "TOO_MANY_ATTEMPTS"
    abuse_guard.check_locked.assert_awaited_once_with("alice")
    mock_uow.accounts.get_by_username.assert_not_called()
    mock_uow.accounts.update.assert_not_called()
    email_dispatcher.send.assert_not_called()


# ============================================================================
# Confirm
# ============================================================================


@pytest.mark.asyncio
async def test_confirm_reset(confirm_use_case, mock_uow, hasher, account, mock_accounts_cache):
    mock_uow.accounts.get_by_reset_token_hash.return_value = account

    result = await confirm_use_case.execute("a" * 64, "NewSecurePass1")

    assert result.is_ok()
    assert result.value.status == "success"

    mock_uow.accounts.get_by_reset_token_hash.assert_awaited_once_with(
        hasher.digest("a" * 64), NOW
    )
    account_id, token_hash, password_hash, now = (
        mock_uow.accounts.redeem_reset_ticket.call_args.args
    )
    assert account_id == account.id
    assert token_hash == hasher.digest("a" * 64)
    assert hasher.verify("NewSecurePass1", password_hash)
    mock_uow.commit.assert_awaited_once()
    mock_accounts_cache.invalidate.assert_awaited_once_with(account.id)


@pytest.mark.asyncio
async def test_confirm_with_unknown_or_expired_ticket(confirm_use_case, mock_uow):
    result = await confirm_use_case.execute("b" * 64, "NewSecurePass1")

    assert result.is_err()
    assert result.error.code == "INVALID_RESET_TOKEN"
    mock_uow.accounts.redeem_reset_ticket.assert_not_called()


@pytest.mark.asyncio
async def test_confirm_loses_race_for_ticket(confirm_use_case, mock_uow, account):
    mock_uow.accounts.get_by_reset_token_hash.return_value = account
    mock_uow.accounts.redeem_reset_ticket.return_value = False

    result = await confirm_use_case.execute("a" * 64, "NewSecurePass1")

    assert result.is_err()
    assert result.error.code == "INVALID_RESET_TOKEN"
    mock_uow.rollback.assert_awaited_once()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_confirm_rejects_short_password(confirm_use_case, mock_uow):
    result = await confirm_use_case.execute("a" * 64, "short")

    assert result.is_err()
    assert result.error.code == "INVALID_PASSWORD"
    mock_uow.accounts.get_by_reset_token_hash.assert_not_called()


@pytest.mark.asyncio
async def test_confirm_rejects_password_longer_than_bcrypt_accepts(confirm_use_case, mock_uow):
    result = await confirm_use_case.execute("a" * 64, "é" * 40)

    assert result.is_err()
    assert result.error.code == "INVALID_PASSWORD"
    mock_uow.accounts.redeem_reset_ticket.assert_not_called()
