"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from typing import Optional

from pydantic import BaseModel

from estate_iam.app.use_cases.accounts.dtos import AccountView


# ============================================================================
# Commands
# ============================================================================


class RegistrationOtpCommand(BaseModel):
    """Request for a registration code"""

    email: str
    username: str
    role: str = "User"


class VerifyRegistrationCommand(BaseModel):
    """Registration code plus the fields of the account to create"""

    email: str
    code: str
    username: str
    password: str
    role: str = "User"
    phone: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class RegistrationOtpResponse(BaseModel):
    """Response for registration code request"""

    status: str
    message: str
    expires_in_seconds: int


class SessionResponse(BaseModel):
    """Session token and the authenticated account"""

    access_token: str
    token_type: str = "Bearer"
    account: AccountView


class RequestPasswordResetResponse(BaseModel):
    """Response for request password reset use case"""

    status: str
    message: str


class ConfirmPasswordResetResponse(BaseModel):
    """Response for confirm password reset use case"""

    status: str
    message: str
