"""
Account Entity

Represents a person who can sign in as a User, Agent or Admin.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from ..base import utcnow
from .enums import AccountRole

DEFAULT_PROFILE_IMAGE = (
    "https://encrypted-tbn3.gstatic.com/images?q=tbn:ANd9GcQwDrsJA7KULLY2CmTumjKH4-ywJ7SXxaXhgY9xobv13ufFWsR5"
)


class Account(SQLModel, table=True):
    """
    Account entity - the authoritative credential record.

    Business Rules:
    - Username and email are each globally unique
    - Email is stored lower-cased
    - Password stored as bcrypt hash (cost factor 12)
    - Reset ticket stored as SHA-256 hash + expiry, cleared on redemption
    - Role changes only through the admin account endpoints
    """

    __tablename__ = "accounts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(unique=True, index=True, min_length=3, max_length=30)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    role: AccountRole = Field(default=AccountRole.user)
    phone: Optional[str] = Field(default=None, max_length=10)
    profile_image: str = Field(default=DEFAULT_PROFILE_IMAGE, max_length=1024)

    # Password reset ticket (single-use)
    password_reset_token_hash: Optional[str] = Field(
        default=None, index=True, max_length=64
    )
    password_reset_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    # Timestamps
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_account_role", "role"),)
