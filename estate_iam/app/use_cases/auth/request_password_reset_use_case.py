"""
Request Password Reset Use Case

Handles generating and sending password reset tickets.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from estate_iam.app.services.abuse_guard import AbuseGuard
from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.email_dispatcher import IEmailDispatcher
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.domain.base import utcnow
from estate_iam.libs.result import Error, Result, Return
from .dtos import RequestPasswordResetResponse
from .login_use_case import resolve_identifier

logger = logging.getLogger(__name__)


class RequestPasswordResetUseCase:
    """
    Use case for requesting password reset.

    Business Rules:
    - Generate cryptographically secure 32-byte hex ticket
    - Store only the SHA-256 hash of the ticket, with a 1 hour expiry
    - A new request replaces any earlier ticket
    - The plaintext ticket only ever leaves in the reset link email
    - Identifiers locked out by failed logins cannot request a ticket
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: ISecretHasher,
        email_dispatcher: IEmailDispatcher,
        abuse_guard: AbuseGuard,
        accounts_cache: CachedAggregate,
        reset_url_base: str,
        ttl_minutes: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.hasher = hasher
        self.email_dispatcher = email_dispatcher
        self.abuse_guard = abuse_guard
        self.accounts_cache = accounts_cache
        self.reset_url_base = reset_url_base.rstrip("/")
        self.ttl_minutes = ttl_minutes
        self.clock = clock

    async def execute(self, identifier: str) -> Result[RequestPasswordResetResponse]:
        """
        Execute request password reset use case.

        Args:
            identifier: Username or email

        Returns:
            Result with reset status, or Error

        Errors:
            - TOO_MANY_ATTEMPTS: Identifier locked out (details carry time left)
            - ACCOUNT_NOT_FOUND: No account for the identifier
            - EMAIL_DISPATCH_FAILED: Ticket stored but email not sent
        """
        locked = await self.abuse_guard.check_locked(identifier)
        if locked.is_err():
            return Return.err(locked.error)

        async with self.uow:
            account = await resolve_identifier(self.uow, identifier)
            if account is None:
                return Return.err(
                    Error(
                        "ACCOUNT_NOT_FOUND",
                        "User account not found with the given credentials.",
                    )
                )

            reset_token = secrets.token_hex(32)
            account.password_reset_token_hash = self.hasher.digest(reset_token)
            account.password_reset_expires_at = self.clock() + timedelta(
                minutes=self.ttl_minutes
            )
            account = await self.uow.accounts.update(account)
            await self.uow.commit()

        await self.accounts_cache.invalidate(account.id)

        reset_url = f"{self.reset_url_base}/{reset_token}"
        subject = "Password Reset Request"
        html = f"""
            <p>Hello {account.username or account.email},</p>
            <p>You requested a password reset. Click the link below to reset your password:</p>
            <p><a href="{reset_url}">{reset_url}</a></p>
            <p>This link will expire in {self.ttl_minutes} minutes.</p>
            <p>If you did not request this, please ignore this email.</p>
        """
        sent = await self.email_dispatcher.send(account.email, subject, html)
        if not sent:
            return Return.err(
                Error("EMAIL_DISPATCH_FAILED", "Could not send the reset email. Please try again.")
            )

        logger.info(f"Password reset ticket issued for account {account.id}")
        return Return.ok(
            RequestPasswordResetResponse(
                status="sent",
                message="Sent an email to your address to reset the password",
            )
        )
