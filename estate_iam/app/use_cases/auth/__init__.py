"""
Authentication Use Cases

All authentication-related business logic.
"""

from .request_registration_otp_use_case import RequestRegistrationOtpUseCase
from .verify_registration_otp_use_case import VerifyRegistrationOtpUseCase
from .login_use_case import LoginUseCase
from .request_password_reset_use_case import RequestPasswordResetUseCase
from .confirm_password_reset_use_case import ConfirmPasswordResetUseCase
from .dtos import (
    RegistrationOtpCommand,
    VerifyRegistrationCommand,
    RegistrationOtpResponse,
    SessionResponse,
    RequestPasswordResetResponse,
    ConfirmPasswordResetResponse,
)

__all__ = [
    # Use Cases
    "RequestRegistrationOtpUseCase",
    "VerifyRegistrationOtpUseCase",
    "LoginUseCase",
    "RequestPasswordResetUseCase",
    "ConfirmPasswordResetUseCase",
    # DTOs - Commands
    "RegistrationOtpCommand",
    "VerifyRegistrationCommand",
    # DTOs - Responses
    "RegistrationOtpResponse",
    "SessionResponse",
    "RequestPasswordResetResponse",
    "ConfirmPasswordResetResponse",
]
