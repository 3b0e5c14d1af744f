"""
Account Use Case DTOs (Data Transfer Objects)

Read views never carry the password hash or reset ticket fields.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from estate_iam.domain.entities import Account


class AccountView(BaseModel):
    """Public projection of an Account"""

    id: str
    username: str
    email: str
    role: str
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountView":
        role = account.role.value if hasattr(account.role, "value") else account.role
        return cls(
            id=str(account.id),
            username=account.username,
            email=account.email,
            role=role,
            phone=account.phone,
            profile_image=account.profile_image,
            last_login_at=account.last_login_at,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )

    def to_cache(self) -> dict:
        return self.model_dump(mode="json")


# ============================================================================
# Commands
# ============================================================================


class CreateAccountCommand(BaseModel):
    username: str
    email: str
    password: str
    role: str = "User"
    phone: Optional[str] = None


class UpdateAccountCommand(BaseModel):
    """Only fields that are set are applied"""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class AccountResponse(BaseModel):
    """Single account, tagged with whether it was served from cache"""

    account: AccountView
    cached: bool = False


class AccountListResponse(BaseModel):
    accounts: List[AccountView]
    cached: bool = False


class DeleteAccountResponse(BaseModel):
    status: str
    message: str
