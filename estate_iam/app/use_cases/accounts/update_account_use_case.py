"""
Update Account Use Case

Shared by the admin account endpoint and the self-service profile endpoint.
"""

from uuid import UUID

from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.libs.result import Error, Result, Return
from .dtos import AccountResponse, AccountView, UpdateAccountCommand
from .validation import validate_password, validate_phone, validate_role, validate_username


class UpdateAccountUseCase:
    """
    Business Rules:
    - Changed email or username must not belong to another account
    - Password changes are re-hashed with bcrypt
    - Role changes only when ``allow_role_change`` (privileged callers)
    - Entity and collection cache keys are wiped before returning
    """

    def __init__(self, uow: UnitOfWork, hasher: ISecretHasher, accounts_cache: CachedAggregate):
        self.uow = uow
        self.hasher = hasher
        self.accounts_cache = accounts_cache

    async def execute(
        self,
        account_id: UUID,
        command: UpdateAccountCommand,
        allow_role_change: bool = False,
    ) -> Result[AccountResponse]:
        """
        Errors:
            - VALIDATION_ERROR / INVALID_PASSWORD / INVALID_ROLE: Bad field
            - FORBIDDEN: Role change without privilege
            - ACCOUNT_NOT_FOUND: Unknown account
            - ACCOUNT_ALREADY_EXISTS: Email or username held by another account
        """
        checks = []
        if command.username is not None:
            checks.append(validate_username(command.username))
        if command.password is not None:
            checks.append(validate_password(command.password))
        checks.append(validate_phone(command.phone))
        for check in checks:
            if check.is_err():
                return Return.err(check.error)

        new_role = None
        if command.role is not None:
            if not allow_role_change:
                return Return.err(Error("FORBIDDEN", "Role can only be changed by an admin"))
            role = validate_role(command.role)
            if role.is_err():
                return Return.err(role.error)
            new_role = role.value

        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found."))

            email = command.email.lower() if command.email else account.email
            username = command.username or account.username
            if email != account.email or username != account.username:
                existing = await self.uow.accounts.find_conflict(
                    email, username, exclude_id=account.id
                )
                if existing is not None:
                    field = "Email" if existing.email == email else "Username"
                    return Return.err(
                        Error("ACCOUNT_ALREADY_EXISTS", f"{field} already exists.")
                    )

            account.email = email
            account.username = username
            if command.password is not None:
                account.password_hash = self.hasher.hash(command.password)
            if command.phone is not None:
                account.phone = command.phone
            if new_role is not None:
                account.role = new_role

            account = await self.uow.accounts.update(account)
            await self.uow.commit()

        await self.accounts_cache.invalidate(account.id)
        return Return.ok(AccountResponse(account=AccountView.from_account(account)))
