"""
Use Cases

Organized into domain folders:
- auth/: Registration, login and password reset flows
- accounts/: Cached account reads and writes

Import from subdirectories for better organization.
"""

from .auth import (
    RequestRegistrationOtpUseCase,
    VerifyRegistrationOtpUseCase,
    LoginUseCase,
    RequestPasswordResetUseCase,
    ConfirmPasswordResetUseCase,
)
from .accounts import (
    GetAccountUseCase,
    ListAccountsUseCase,
    CreateAccountUseCase,
    UpdateAccountUseCase,
    DeleteAccountUseCase,
)

__all__ = [
    # Auth
    "RequestRegistrationOtpUseCase",
    "VerifyRegistrationOtpUseCase",
    "LoginUseCase",
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
    # Accounts
    "GetAccountUseCase",
    "ListAccountsUseCase",
    "CreateAccountUseCase",
    "UpdateAccountUseCase",
    "DeleteAccountUseCase",
]
