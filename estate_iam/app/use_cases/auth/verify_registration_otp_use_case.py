"""
Verify Registration OTP Use Case

Consumes a registration code exactly once and creates the account.
"""

import logging
from datetime import datetime
from typing import Callable

from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.token_service import ITokenService
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.app.use_cases.accounts.dtos import AccountView
from estate_iam.app.use_cases.accounts.validation import validate_new_account
from estate_iam.domain.base import utcnow
from estate_iam.domain.entities import Account, ChallengeState
from estate_iam.libs.result import Error, Result, Return
from .dtos import SessionResponse, VerifyRegistrationCommand

logger = logging.getLogger(__name__)


class VerifyRegistrationOtpUseCase:
    """
    Use case for completing registration.

    Business Rules:
    - Challenge lookup, then code check, then expiry check
    - An expired challenge is deleted when it is presented
    - The challenge is deleted in the same transaction that creates the
      account; if another request consumed it first, nothing is created
    - New account gets a fresh bcrypt password hash and a session token
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: ISecretHasher,
        token_service: ITokenService,
        accounts_cache: CachedAggregate,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.hasher = hasher
        self.token_service = token_service
        self.accounts_cache = accounts_cache
        self.clock = clock

    async def execute(self, command: VerifyRegistrationCommand) -> Result[SessionResponse]:
        """
        Execute verify registration OTP use case.

        Args:
            command: Code plus the account fields to create

        Returns:
            Result with SessionResponse for the new account, or Error

        Errors:
            - VALIDATION_ERROR / INVALID_PASSWORD / INVALID_ROLE: Bad account fields
            - OTP_NOT_FOUND: No challenge for this email (or already consumed)
            - INVALID_OTP: Code does not match
            - OTP_EXPIRED: Challenge past its validity (and now deleted)
            - ACCOUNT_ALREADY_EXISTS: Email or username taken meanwhile
        """
        role = validate_new_account(
            command.username, command.password, command.role, command.phone
        )
        if role.is_err():
            return Return.err(role.error)

        email = command.email.lower()

        async with self.uow:
            challenge = await self.uow.otp_challenges.get_by_email(email)
            if challenge is None:
                return Return.err(Error("OTP_NOT_FOUND", "OTP not found or has expired."))

            if not self.hasher.verify(command.code, challenge.code_hash):
                return Return.err(Error("INVALID_OTP", "Invalid OTP."))

            if challenge.state_at(self.clock()) == ChallengeState.expired:
                await self.uow.otp_challenges.delete(email)
                await self.uow.commit()
                return Return.err(Error("OTP_EXPIRED", "OTP has expired."))

            existing = await self.uow.accounts.find_conflict(email, command.username)
            if existing is not None:
                return Return.err(
                    Error(
                        "ACCOUNT_ALREADY_EXISTS",
                        "User with the given credentials already exists.",
                    )
                )

            account = Account(
                username=command.username,
                email=email,
                password_hash=self.hasher.hash(command.password),
                role=role.value,
                phone=command.phone,
            )
            account = await self.uow.accounts.create(account)

            consumed = await self.uow.otp_challenges.delete(email)
            if not consumed:
                # A concurrent verification consumed the code first
                await self.uow.rollback()
                return Return.err(Error("OTP_NOT_FOUND", "OTP not found or has expired."))

            await self.uow.commit()

        await self.accounts_cache.invalidate(account.id)
        logger.info(f"Account {account.id} registered with role {role.value.value}")

        return Return.ok(
            SessionResponse(
                access_token=self.token_service.issue(account),
                account=AccountView.from_account(account),
            )
        )
