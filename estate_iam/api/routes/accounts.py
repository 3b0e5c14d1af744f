from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from estate_iam.api.error import raise_for_error
from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.capabilities import ACCOUNT_KIND, Capability
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.unit_of_work import UnitOfWork
from estate_iam.app.use_cases.accounts import (
    AccountListResponse,
    AccountResponse,
    CreateAccountCommand,
    CreateAccountUseCase,
    DeleteAccountResponse,
    DeleteAccountUseCase,
    GetAccountUseCase,
    ListAccountsUseCase,
    UpdateAccountCommand,
    UpdateAccountUseCase,
)
from estate_iam.depends import (
    get_accounts_cache,
    get_secret_hasher,
    get_unit_of_work,
    require_capability,
)

router = APIRouter(prefix="/accounts", tags=["Accounts"])

RoleName = Literal["User", "Agent", "Admin"]

can_read = require_capability(ACCOUNT_KIND, Capability.read)
can_write = require_capability(ACCOUNT_KIND, Capability.write)
can_delete = require_capability(ACCOUNT_KIND, Capability.delete)


class CreateAccountRequest(BaseModel):
    """POST /accounts request payload"""

    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: RoleName = "User"
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")


class UpdateAccountRequest(BaseModel):
    """PUT /accounts/{account_id} request payload"""

    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[RoleName] = None
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")


@router.get("", status_code=status.HTTP_200_OK, response_model=AccountListResponse)
async def list_accounts(
    current_account: dict = Depends(can_read),
    uow: UnitOfWork = Depends(get_unit_of_work),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    List Accounts

    Newest first. Served from the collection cache when warm.

    Raises:
        - 401 Unauthorized: Invalid or expired token
        - 403 Forbidden: Role lacks read access to accounts
    """
    result = await ListAccountsUseCase(uow, accounts_cache).execute()
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AccountResponse)
async def create_account(
    request: CreateAccountRequest,
    current_account: dict = Depends(can_write),
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    Create Account

    Raises:
        - 403 Forbidden: Role lacks write access to accounts
        - 409 Conflict: Email or username already registered
    """
    command = CreateAccountCommand(**request.model_dump())

    result = await CreateAccountUseCase(uow, hasher, accounts_cache).execute(command)
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{account_id}", status_code=status.HTTP_200_OK, response_model=AccountResponse)
async def get_account(
    account_id: UUID,
    current_account: dict = Depends(can_read),
    uow: UnitOfWork = Depends(get_unit_of_work),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    Get Account

    Raises:
        - 403 Forbidden: Role lacks read access to accounts
        - 404 Not Found: Unknown account
    """
    result = await GetAccountUseCase(uow, accounts_cache).execute(account_id)
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put("/{account_id}", status_code=status.HTTP_200_OK, response_model=AccountResponse)
async def update_account(
    account_id: UUID,
    request: UpdateAccountRequest,
    current_account: dict = Depends(can_write),
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    Update Account

    Callers with write access may change the role.

    Raises:
        - 403 Forbidden: Role lacks write access to accounts
        - 404 Not Found: Unknown account
        - 409 Conflict: Email or username held by another account
    """
    command = UpdateAccountCommand(**request.model_dump(exclude_unset=True))

    use_case = UpdateAccountUseCase(uow, hasher, accounts_cache)
    result = await use_case.execute(account_id, command, allow_role_change=True)
    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/{account_id}", status_code=status.HTTP_200_OK, response_model=DeleteAccountResponse
)
async def delete_account(
    account_id: UUID,
    current_account: dict = Depends(can_delete),
    uow: UnitOfWork = Depends(get_unit_of_work),
    accounts_cache: CachedAggregate = Depends(get_accounts_cache),
):
    """
    Delete Account

    Raises:
        - 403 Forbidden: Role lacks delete access to accounts
        - 404 Not Found: Unknown account
    """
    result = await DeleteAccountUseCase(uow, accounts_cache).execute(account_id)
    if result.is_err():
        raise_for_error(result.error)

    return result.value
