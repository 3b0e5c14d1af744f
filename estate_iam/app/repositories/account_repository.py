from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from estate_iam.domain.entities import Account


class IAccountRepository(ABC):
    """Account repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Get account by ID"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email address"""
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[Account]:
        """Get account by username"""
        pass

    @abstractmethod
    async def find_conflict(
        self, email: str, username: str, exclude_id: Optional[UUID] = None
    ) -> Optional[Account]:
        """Get any other account already holding this email or username"""
        pass

    @abstractmethod
    async def get_by_reset_token_hash(
        self, token_hash: str, now: datetime
    ) -> Optional[Account]:
        """Get account holding this reset ticket hash with an unexpired ticket"""
        pass

    @abstractmethod
    async def redeem_reset_ticket(
        self, account_id: UUID, token_hash: str, password_hash: str, now: datetime
    ) -> bool:
        """
        Set the new password and clear the ticket in one conditional update.

        Returns False if the ticket was already redeemed or has expired.
        """
        pass

    @abstractmethod
    async def list_all(self) -> List[Account]:
        """List all accounts, newest first"""
        pass

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Create a new account"""
        pass

    @abstractmethod
    async def update(self, account: Account) -> Account:
        """Update existing account"""
        pass

    @abstractmethod
    async def delete(self, account: Account) -> None:
        """Delete account"""
        pass
