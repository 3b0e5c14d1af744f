from typing import Literal, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import AliasChoices, BaseModel, EmailStr, Field

from estate_iam.api.error import raise_for_error
from estate_iam.app.services.abuse_guard import AbuseGuard
from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.email_dispatcher import IEmailDispatcher
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.token_service import ITokenService
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.app.use_cases.auth import (
    ConfirmPasswordResetResponse,
    ConfirmPasswordResetUseCase,
    LoginUseCase,
    RegistrationOtpCommand,
    RegistrationOtpResponse,
    RequestPasswordResetResponse,
    RequestPasswordResetUseCase,
    RequestRegistrationOtpUseCase,
    SessionResponse,
    VerifyRegistrationCommand,
    VerifyRegistrationOtpUseCase,
)
from estate_iam.depends import (
    SESSION_COOKIE,
    get_abuse_guard,
    get_accounts_cache,
    get_config,
    get_email_dispatcher,
    get_secret_hasher,
    get_token_service,
    get_unit_of_work,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

RoleName = Literal["User", "Agent", "Admin"]


def set_session_cookie(response: Response, token: str, config) -> None:
    """Mirror the bearer token in an HTTP-only, same-site-strict cookie"""
    response.set_cookie(
        SESSION_COOKIE,
        f"Bearer {token}",
        max_age=config.SESSION_TTL_HOURS * 3600,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="strict",
    )


class RegistrationOtpRequest(BaseModel):
    """
    Registration code HTTP request payload
    """

    email: EmailStr = Field(..., description="Email address to verify")
    username: str = Field(..., min_length=3, max_length=30)
    role: RoleName = Field("User", description="Role of the account to create")


@router.post(
    "/register/otp", status_code=status.HTTP_200_OK, response_model=RegistrationOtpResponse
)
async def request_registration_otp(
    request: RegistrationOtpRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    email_dispatcher: IEmailDispatcher = Depends(get_email_dispatcher),
    config=Depends(get_config),
):
    """
    Request Registration Code

    Emails a 6-digit code valid for 10 minutes.

    Raises:
        - 409 Conflict: Email or username already registered
        - 400 Bad Request: Invalid input
        - 502 Bad Gateway: Email could not be sent
    """
    command = RegistrationOtpCommand(
        email=request.email, username=request.username, role=request.role
    )
    use_case = RequestRegistrationOtpUseCase(
        uow, hasher, email_dispatcher, ttl_minutes=config.OTP_TTL_MINUTES
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class VerifyRegistrationRequest(BaseModel):
    """
    Registration code plus account fields
    """

    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6, pattern=r"^[0-9]{6}$")
    username: str = Field(..., min_length=3, max_length=30)
    password: str = Field(..., min_length=8, description="Password (min 8 chars)")
    role: RoleName = "User"
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")


@router.post(
    "/register/verify", status_code=status.HTTP_201_CREATED, response_model=SessionResponse
)
async def verify_registration(
    request: VerifyRegistrationRequest,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    token_service: ITokenService = Depends(get_token_service),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
    config=Depends(get_config),
):
    """
    Verify Registration Code

    Consumes the code and creates the account. A code works once.

    Raises:
        - 400 Bad Request: Code missing, wrong or expired
        - 409 Conflict: Email or username taken meanwhile
    """
    command = VerifyRegistrationCommand(
        email=request.email,
        code=request.otp,
        username=request.username,
        password=request.password,
        role=request.role,
        phone=request.phone,
    )
    use_case = VerifyRegistrationOtpUseCase(uow, hasher, token_service, accounts_cache)
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    set_session_cookie(response, result.value.access_token, config)
    return result.value


class LoginRequest(BaseModel):
    """
    Login HTTP request payload
    """

    username_or_email: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("username_or_email", "usernameOrEmail"),
        description="Username or email",
    )
    password: str = Field(..., min_length=1)


@router.post("/login", status_code=status.HTTP_200_OK, response_model=SessionResponse)
async def login(
    request: LoginRequest,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    token_service: ITokenService = Depends(get_token_service),
    abuse_guard: AbuseGuard = Depends(get_abuse_guard),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
    config=Depends(get_config),
):
    """
    User Login

    Authenticates by username or email and returns a 24-hour session token,
    also set as an HTTP-only cookie.

    Raises:
        - 404 Not Found: No account for the identifier
        - 401 Unauthorized: Wrong password
        - 429 Too Many Requests: Identifier locked out (Retry-After set)
        - 503 Service Unavailable: Lockout store unreachable
    """
    use_case = LoginUseCase(uow, hasher, token_service, abuse_guard, accounts_cache)
    result = await use_case.execute(request.username_or_email, request.password)

    if result.is_err():
        raise_for_error(result.error)

    set_session_cookie(response, result.value.access_token, config)
    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response):
    """
    Clears the session cookie. Issued tokens stay valid until they expire.
    """
    response.delete_cookie(SESSION_COOKIE, httponly=True, samesite="strict")
    return {"status": "success", "message": "Logged out"}


class ForgotPasswordRequest(BaseModel):
    """
    Password reset request payload
    """

    username_or_email: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("username_or_email", "usernameOrEmail"),
    )


@router.post(
    "/forgot-password",
    status_code=status.HTTP_200_OK,
    response_model=RequestPasswordResetResponse,
)
async def forgot_password(
    request: ForgotPasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    email_dispatcher: IEmailDispatcher = Depends(get_email_dispatcher),
    abuse_guard: AbuseGuard = Depends(get_abuse_guard),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
    config=Depends(get_config),
):
    """
    Request Password Reset

    Emails a reset link valid for 1 hour.

    Raises:
        - 404 Not Found: No account for the identifier
        - 429 Too Many Requests: Identifier locked out (Retry-After set)
        - 502 Bad Gateway: Email could not be sent
    """
    use_case = RequestPasswordResetUseCase(
        uow,
        hasher,
        email_dispatcher,
        abuse_guard,
        accounts_cache,
        reset_url_base=config.RESET_URL_BASE,
        ttl_minutes=config.RESET_TOKEN_TTL_MINUTES,
    )
    result = await use_case.execute(request.username_or_email)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ResetPasswordRequest(BaseModel):
    """
    Reset redemption payload
    """

    reset_token: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("reset_token", "resetToken")
    )
    new_password: str = Field(
        ..., validation_alias=AliasChoices("new_password", "newPassword")
    )


@router.put(
    "/reset-password",
    status_code=status.HTTP_200_OK,
    response_model=ConfirmPasswordResetResponse,
)
async def reset_password(
    request: ResetPasswordRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    Confirm Password Reset

    Raises:
        - 400 Bad Request: Password too short
        - 401 Unauthorized: Invalid or expired token
    """
    use_case = ConfirmPasswordResetUseCase(uow, hasher, accounts_cache)
    result = await use_case.execute(request.reset_token, request.new_password)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
