"""
Create Account Use Case

Privileged account creation (no registration code).
"""

from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.domain.entities import Account
from estate_iam.libs.result import Error, Result, Return
from .dtos import AccountResponse, AccountView, CreateAccountCommand
from .validation import validate_new_account


class CreateAccountUseCase:
    """
    Business Rules:
    - Same field rules and uniqueness checks as registration
    - Collection cache is wiped before returning
    """

    def __init__(self, uow: UnitOfWork, hasher: ISecretHasher, accounts_cache: CachedAggregate):
        self.uow = uow
        self.hasher = hasher
        self.accounts_cache = accounts_cache

    async def execute(self, command: CreateAccountCommand) -> Result[AccountResponse]:
        role = validate_new_account(
            command.username, command.password, command.role, command.phone
        )
        if role.is_err():
            return Return.err(role.error)

        async with self.uow:
            existing = await self.uow.accounts.find_conflict(command.email, command.username)
            if existing is not None:
                return Return.err(
                    Error(
                        "ACCOUNT_ALREADY_EXISTS",
                        "User with the given credentials already exists.",
                    )
                )

            account = Account(
                username=command.username,
                email=command.email,
                password_hash=self.hasher.hash(command.password),
                role=role.value,
                phone=command.phone,
            )
            account = await self.uow.accounts.create(account)
            await self.uow.commit()

        await self.accounts_cache.invalidate(account.id)
        return Return.ok(AccountResponse(account=AccountView.from_account(account)))
