"""
Login Use Case

Handles password authentication behind the failed-attempt lockout and
returns a session token.
"""

from datetime import datetime
from typing import Callable, Optional

from estate_iam.app.services.abuse_guard import AbuseGuard
from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.token_service import ITokenService
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.app.use_cases.accounts.dtos import AccountView
from estate_iam.domain.base import utcnow
from estate_iam.domain.entities import Account
from estate_iam.libs.result import Error, Result, Return
from .dtos import SessionResponse


async def resolve_identifier(uow: UnitOfWork, identifier: str) -> Optional[Account]:
    """Identifiers containing '@' are looked up as emails, others as usernames"""
    if "@" in identifier:
        return await uow.accounts.get_by_email(identifier)
    return await uow.accounts.get_by_username(identifier)


class LoginUseCase:
    """
    Use case for login and session token issuance.

    Business Rules (order is fixed):
    1. Resolve identifier; unknown identifiers count as a failed attempt
    2. Reject locked identifiers before hashing the password
    3. Verify password; a mismatch counts as a failed attempt
    4. On success reset the counter, stamp last_login_at, issue token
    Exactly one outcome is recorded per attempt.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: ISecretHasher,
        token_service: ITokenService,
        abuse_guard: AbuseGuard,
        accounts_cache: CachedAggregate,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.hasher = hasher
        self.token_service = token_service
        self.abuse_guard = abuse_guard
        self.accounts_cache = accounts_cache
        self.clock = clock

    async def execute(self, identifier: str, password: str) -> Result[SessionResponse]:
        """
        Execute login use case.

        Args:
            identifier: Username or email
            password: Plain text password

        Returns:
            Result with SessionResponse, or Error

        Errors:
            - ACCOUNT_NOT_FOUND: No account for the identifier
            - TOO_MANY_ATTEMPTS: Identifier locked out (details carry time left)
            - INVALID_CREDENTIALS: Wrong password
        """
        async with self.uow:
            account = await resolve_identifier(self.uow, identifier)
            if account is None:
                await self.abuse_guard.record_outcome(identifier, succeeded=False)
                return Return.err(
                    Error(
                        "ACCOUNT_NOT_FOUND",
                        "User account not found with the given credentials.",
                    )
                )

            locked = await self.abuse_guard.check_locked(identifier)
            if locked.is_err():
                return Return.err(locked.error)

            if not self.hasher.verify(password, account.password_hash):
                await self.abuse_guard.record_outcome(identifier, succeeded=False)
                return Return.err(Error("INVALID_CREDENTIALS", "Invalid credential."))

            await self.abuse_guard.record_outcome(identifier, succeeded=True)

            account.last_login_at = self.clock()
            account = await self.uow.accounts.update(account)
            await self.uow.commit()

        await self.accounts_cache.invalidate(account.id)

        return Return.ok(
            SessionResponse(
                access_token=self.token_service.issue(account),
                account=AccountView.from_account(account),
            )
        )
