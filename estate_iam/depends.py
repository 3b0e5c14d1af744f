"""
FastAPI dependency providers.

Long-lived collaborators (SQL engine, Redis client, hasher, token service,
email transport) are built once in ``create_app`` and kept on
``app.state``; these functions hand them to routes so tests can override
any of them with in-memory fakes.
"""

from typing import Optional

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from estate_iam.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from estate_iam.api.error import ClientError
from estate_iam.app.services.abuse_guard import AbuseGuard
from estate_iam.app.services.cache_coherent_reader import CacheCoherentReader
from estate_iam.app.services.cached_aggregate import CachedAggregate
from estate_iam.app.services.capabilities import ACCOUNT_KIND, Capability, has_capability
from estate_iam.app.services.email_dispatcher import IEmailDispatcher
from estate_iam.app.services.ephemeral_store import IEphemeralStore
from estate_iam.app.services.secret_hasher import ISecretHasher
from estate_iam.app.services.token_service import ITokenService
from estate_iam.libs.result import Error

SESSION_COOKIE = "access_token"

security = HTTPBearer(auto_error=False)


def get_config(request: Request):
    return request.app.state.config


async def get_unit_of_work(request: Request):
    async with request.app.state.session_factory() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_ephemeral_store(request: Request) -> IEphemeralStore:
    return request.app.state.ephemeral_store


def get_secret_hasher(request: Request) -> ISecretHasher:
    return request.app.state.secret_hasher


def get_token_service(request: Request) -> ITokenService:
    return request.app.state.token_service


def get_email_dispatcher(request: Request) -> IEmailDispatcher:
    return request.app.state.email_dispatcher


def get_abuse_guard(
    store: IEphemeralStore = Depends(get_ephemeral_store),
    config=Depends(get_config),
) -> AbuseGuard:
    return AbuseGuard(
        store,
        threshold=config.LOCKOUT_THRESHOLD,
        lockout_window=config.LOCKOUT_WINDOW_SECONDS,
    )


def get_accounts_cache(
    store: IEphemeralStore = Depends(get_ephemeral_store),
    config=Depends(get_config),
) -> CachedAggregate:
    return CachedAggregate(
        ACCOUNT_KIND,
        CacheCoherentReader(store),
        entity_ttl=config.CACHE_ENTITY_TTL_SECONDS,
        collection_ttl=config.CACHE_COLLECTION_TTL_SECONDS,
    )


def _extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    cookie = request.cookies.get(SESSION_COOKIE)
    if cookie and cookie.startswith("Bearer "):
        return cookie[len("Bearer "):]
    return None


async def get_current_account(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: ITokenService = Depends(get_token_service),
) -> dict:
    """
    Dependency to extract and verify the session token.

    The token is read from the Authorization header, falling back to the
    ``access_token`` cookie.

    Returns:
        Decoded JWT payload containing account_id, username, role

    Raises:
        ClientError: 401 if token is missing, invalid or expired
    """
    token = _extract_token(request, credentials)
    if token is None:
        raise ClientError(
            Error("UNAUTHORIZED", "Unauthorized: Token is missing or malformed"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    payload = token_service.verify(token)
    if payload is None:
        raise ClientError(
            Error("UNAUTHORIZED", "Unauthorized: Invalid or expired token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return payload


def require_capability(kind: str, capability: Capability):
    """Dependency factory: 403 unless the caller's role grants ``capability`` on ``kind``"""

    async def checker(current_account: dict = Depends(get_current_account)) -> dict:
        if not has_capability(current_account.get("role", ""), kind, capability):
            raise ClientError(
                Error("FORBIDDEN", f"Forbidden: {capability.value} access to {kind} denied"),
                status_code=status.HTTP_403_FORBIDDEN,
            )
        return current_account

    return checker
