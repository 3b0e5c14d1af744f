"""
Account Management Use Cases

Cached reads and cache-invalidating writes of the account aggregate.
"""

from .read_accounts_use_case import GetAccountUseCase, ListAccountsUseCase
from .create_account_use_case import CreateAccountUseCase
from .update_account_use_case import UpdateAccountUseCase
from .delete_account_use_case import DeleteAccountUseCase
from .dtos import (
    AccountView,
    AccountResponse,
    AccountListResponse,
    CreateAccountCommand,
    UpdateAccountCommand,
    DeleteAccountResponse,
)

__all__ = [
    "GetAccountUseCase",
    "ListAccountsUseCase",
    "CreateAccountUseCase",
    "UpdateAccountUseCase",
    "DeleteAccountUseCase",
    "AccountView",
    "AccountResponse",
    "AccountListResponse",
    "CreateAccountCommand",
    "UpdateAccountCommand",
    "DeleteAccountResponse",
]
