from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field

from estate_iam.api.error import raise_for_error
from estate_iam.api.routes.auth import set_session_cookie
from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.token_service import ITokenService
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.app.use_cases.accounts import (
    AccountResponse,
    DeleteAccountResponse,
    DeleteAccountUseCase,
    GetAccountUseCase,
    UpdateAccountCommand,
    UpdateAccountUseCase,
)
from estate_iam.app.use_cases.auth import SessionResponse
from estate_iam.depends import (
    SESSION_COOKIE,
    get_accounts_cache,
    get_config,
    get_current_account,
    get_secret_hasher,
    get_token_service,
    get_unit_of_work,
)

router = APIRouter(prefix="/me", tags=["Me"])


class UpdateProfileRequest(BaseModel):
    """PUT /me request payload. Role is not self-service."""

    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")


@router.get("", status_code=status.HTTP_200_OK, response_model=AccountResponse)
async def get_me(
    current_account: dict = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    Load Current Account

    Served from the account cache when warm.

    Raises:
        - 401 Unauthorized: Invalid or expired token
        - 404 Not Found: Account deleted since the token was issued
    """
    account_id = UUID(current_account["account_id"])

    result = await GetAccountUseCase(uow, accounts_cache).execute(account_id)
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put("", status_code=status.HTTP_200_OK, response_model=SessionResponse)
async def update_me(
    request: UpdateProfileRequest,
    response: Response,
    current_account: dict = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    token_service: ITokenService = Depends(get_token_service),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
    config=Depends(get_config),
):
    """
    Update Current Account

    Re-issues the session token since the username claim may have changed.

    Raises:
        - 401 Unauthorized: Invalid or expired token
        - 404 Not Found: Account deleted
        - 409 Conflict: Email or username held by another account
    """
    account_id = UUID(current_account["account_id"])
    command = UpdateAccountCommand(**request.model_dump(exclude_unset=True))

    use_case = UpdateAccountUseCase(uow, hasher, accounts_cache)
    result = await use_case.execute(account_id, command)
    if result.is_err():
        raise_for_error(result.error)

    account = result.value.account
    token = token_service.issue(account)
    set_session_cookie(response, token, config)
    return SessionResponse(access_token=token, account=account)


@router.delete("", status_code=status.HTTP_200_OK, response_model=DeleteAccountResponse)
async def delete_me(
    response: Response,
    current_account: dict = Depends(get_current_account),
    uow: UnitOfWork = Depends(get_unit_of_work),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    Delete Current Account

    Also clears the session cookie.
    """
    account_id = UUID(current_account["account_id"])

    result = await DeleteAccountUseCase(uow, accounts_cache).execute(account_id)
    if result.is_err():
        raise_for_error(result.error)

    response.delete_cookie(SESSION_COOKIE, httponly=True, samesite="strict")
    return result.value
