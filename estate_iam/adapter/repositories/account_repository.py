from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import col, or_, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from estate_iam.app.repositories.account_repository import IAccountRepository
from estate_iam.domain.base import utcnow
from estate_iam.domain.entities import Account


class AccountRepository(IAccountRepository):
    """Account repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Get account by ID"""
        stmt = select(Account).where(Account.id == account_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email address"""
        stmt = select(Account).where(Account.email == email.lower())
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_username(self, username: str) -> Optional[Account]:
        """Get account by username"""
        stmt = select(Account).where(Account.username == username)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def find_conflict(
        self, email: str, username: str, exclude_id: Optional[UUID] = None
    ) -> Optional[Account]:
        """Get any other account already holding this email or username"""
        stmt = select(Account).where(
            or_(Account.email == email.lower(), Account.username == username)
        )
        if exclude_id is not None:
            stmt = stmt.where(Account.id != exclude_id)
        result = await self.session.exec(stmt.limit(1))
        return result.first()

    async def get_by_reset_token_hash(
        self, token_hash: str, now: datetime
    ) -> Optional[Account]:
        """Get account holding this reset ticket hash with an unexpired ticket"""
        stmt = select(Account).where(
            Account.password_reset_token_hash == token_hash,
            col(Account.password_reset_expires_at) > now,
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def redeem_reset_ticket(
        self, account_id: UUID, token_hash: str, password_hash: str, now: datetime
    ) -> bool:
        """Set the new password and clear the ticket in one conditional update"""
        stmt = (
            update(Account)
            .where(
                Account.id == account_id,
                Account.password_reset_token_hash == token_hash,
                col(Account.password_reset_expires_at) > now,
            )
            .values(
                password_hash=password_hash,
                password_reset_token_hash=None,
                password_reset_expires_at=None,
                updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.exec(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def list_all(self) -> List[Account]:
        """List all accounts, newest first"""
        stmt = select(Account).order_by(col(Account.created_at).desc())
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, account: Account) -> Account:
        """Create a new account"""
        account.email = account.email.lower()
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def update(self, account: Account) -> Account:
        """Update existing account"""
        account.email = account.email.lower()
        account.updated_at = utcnow()
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def delete(self, account: Account) -> None:
        """Delete account"""
        await self.session.delete(account)
        await self.session.flush()
