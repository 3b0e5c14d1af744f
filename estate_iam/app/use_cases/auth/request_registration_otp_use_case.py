"""
Request Registration OTP Use Case

Issues a single-use, time-limited code proving control of an email address.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from estate_iam.app.services.email_dispatcher import IEmailDispatcher
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.app.use_cases.accounts.validation import validate_role
from estate_iam.domain.base import utcnow
from estate_iam.domain.entities import OtpChallenge
from estate_iam.libs.result import Error, Result, Return
from .dtos import RegistrationOtpCommand, RegistrationOtpResponse

logger = logging.getLogger(__name__)


def generate_otp_code() -> str:
    """6-digit numeric code in [100000, 999999]"""
    return str(100000 + secrets.randbelow(900000))


class RequestRegistrationOtpUseCase:
    """
    Use case for issuing a registration code.

    Business Rules:
    - Email and username must not belong to an existing account
    - Code is hashed with bcrypt before storing
    - Code expires in 10 minutes
    - A new request replaces any earlier code for the same email
    - The challenge is committed before dispatch; if dispatch fails the
      stored code is one the user never received, and a new request
      replaces it
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: ISecretHasher,
        email_dispatcher: IEmailDispatcher,
        ttl_minutes: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.hasher = hasher
        self.email_dispatcher = email_dispatcher
        self.ttl_minutes = ttl_minutes
        self.clock = clock

    async def execute(self, command: RegistrationOtpCommand) -> Result[RegistrationOtpResponse]:
        """
        Execute request registration OTP use case.

        Args:
            command: Email, username and role of the account to register

        Returns:
            Result with RegistrationOtpResponse, or Error

        Errors:
            - INVALID_ROLE: Role is not User, Agent or Admin
            - ACCOUNT_ALREADY_EXISTS: Email or username already taken
            - EMAIL_DISPATCH_FAILED: Code stored but email not sent
        """
        role = validate_role(command.role)
        if role.is_err():
            return Return.err(role.error)

        email = command.email.lower()

        async with self.uow:
            existing = await self.uow.accounts.find_conflict(email, command.username)
            if existing is not None:
                return Return.err(
                    Error(
                        "ACCOUNT_ALREADY_EXISTS",
                        "User with the given credentials already exists.",
                    )
                )

            code = generate_otp_code()
            challenge = OtpChallenge(
                email=email,
                code_hash=self.hasher.hash(code),
                expires_at=self.clock() + timedelta(minutes=self.ttl_minutes),
            )
            await self.uow.otp_challenges.upsert(challenge)
            await self.uow.commit()

        subject = "Your OTP for Registration"
        html = f"Your OTP is: {code}. It is valid for {self.ttl_minutes} minutes."
        sent = await self.email_dispatcher.send(email, subject, html)
        if not sent:
            return Return.err(
                Error("EMAIL_DISPATCH_FAILED", "Could not send the OTP email. Please try again.")
            )

        logger.info(f"Registration OTP issued, valid for {self.ttl_minutes} minutes")
        return Return.ok(
            RegistrationOtpResponse(
                status="sent",
                message="OTP sent to your email. Please verify to complete registration.",
                expires_in_seconds=self.ttl_minutes * 60,
            )
        )
