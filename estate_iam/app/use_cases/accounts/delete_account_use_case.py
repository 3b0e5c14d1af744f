"""
Delete Account Use Case
"""

import logging
from uuid import UUID

from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.libs.result import Error, Result, Return
from .dtos import DeleteAccountResponse

logger = logging.getLogger(__name__)


class DeleteAccountUseCase:
    def __init__(self, uow: UnitOfWork, accounts_cache: CachedAggregate):
        self.uow = uow
        self.accounts_cache = accounts_cache

    async def execute(self, account_id: UUID) -> Result[DeleteAccountResponse]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error("ACCOUNT_NOT_FOUND", "User not found."))

            await self.uow.accounts.delete(account)
            await self.uow.commit()

        await self.accounts_cache.invalidate(account_id)
        logger.info(f"Account {account_id} deleted")

        return Return.ok(
            DeleteAccountResponse(status="deleted", message="User account deleted successfully.")
        )
