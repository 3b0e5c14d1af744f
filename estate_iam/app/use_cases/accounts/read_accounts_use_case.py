"""
Read Accounts Use Cases

Cached reads of a single account and of the account collection.
"""

from uuid import UUID

from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.libs.result import Error, Result, Return
from .dtos import AccountListResponse, AccountResponse, AccountView


class GetAccountUseCase:
    def __init__(self, uow: UnitOfWork, accounts_cache: CachedAggregate):
        self.uow = uow
        self.accounts_cache = accounts_cache

    async def execute(self, account_id: UUID) -> Result[AccountResponse]:
        async def load():
            async with self.uow:
                account = await self.uow.accounts.get_by_id(account_id)
                return AccountView.from_account(account).to_cache() if account else None

        read = await self.accounts_cache.get(account_id, load)
        if read.value is None:
            return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found."))

        return Return.ok(
            AccountResponse(account=AccountView.model_validate(read.value), cached=read.hit)
        )


class ListAccountsUseCase:
    def __init__(self, uow: UnitOfWork, accounts_cache: CachedAggregate):
        self.uow = uow
        self.accounts_cache = accounts_cache

    async def execute(self) -> Result[AccountListResponse]:
        async def load():
            async with self.uow:
                accounts = await self.uow.accounts.list_all()
                return [AccountView.from_account(a).to_cache() for a in accounts]

        read = await self.accounts_cache.list(load)
        return Return.ok(
            AccountListResponse(
                accounts=[AccountView.model_validate(a) for a in read.value or []],
                cached=read.hit,
            )
        )
