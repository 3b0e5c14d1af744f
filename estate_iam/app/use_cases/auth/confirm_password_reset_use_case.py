"""
Confirm Password Reset Use Case

Handles password reset confirmation with secure ticket validation.
"""

import logging
from datetime import datetime
from typing import Callable

from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.app.use_cases.accounts.validation import validate_password
from estate_iam.domain.base import utcnow
from estate_iam.libs.result import Error, Result, Return
from .dtos import ConfirmPasswordResetResponse

logger = logging.getLogger(__name__)

INVALID_TOKEN = Error("INVALID_RESET_TOKEN", "Invalid or expired token")


class ConfirmPasswordResetUseCase:
    """
    Use case for confirming password reset.

    Business Rules:
    - Ticket is found by hashing the presented value with SHA-256
    - Wrong and expired tickets fail identically
    - New password must be at least 8 characters
    - Password update and ticket clearing are one conditional update,
      so a ticket is redeemed at most once
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: ISecretHasher,
        accounts_cache: CachedAggregate,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.hasher = hasher
        self.accounts_cache = accounts_cache
        self.clock = clock

    async def execute(self, token: str, new_password: str) -> Result[ConfirmPasswordResetResponse]:
        """
        Execute confirm password reset use case.

        Args:
            token: Password reset ticket (plain text from email)
            new_password: New password to set

        Returns:
            Result with confirmation status, or Error

        Errors:
            - INVALID_PASSWORD: Password does not meet complexity requirements
            - INVALID_RESET_TOKEN: Ticket unknown, expired or already used
        """
        password_validation = validate_password(new_password)
        if password_validation.is_err():
            return Return.err(password_validation.error)

        token_hash = self.hasher.digest(token)
        now = self.clock()

        async with self.uow:
            account = await self.uow.accounts.get_by_reset_token_hash(token_hash, now)
            if account is None:
                return Return.err(INVALID_TOKEN)

            redeemed = await self.uow.accounts.redeem_reset_ticket(
                account.id, token_hash, self.hasher.hash(new_password), now
            )
            if not redeemed:
                await self.uow.rollback()
                return Return.err(INVALID_TOKEN)

            await self.uow.commit()

        await self.accounts_cache.invalidate(account.id)
        logger.info(f"Password reset completed for account {account.id}")

        return Return.ok(
            ConfirmPasswordResetResponse(
                status="success",
                message="Password has been successfully reset",
            )
        )
