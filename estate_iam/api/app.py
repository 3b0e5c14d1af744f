import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from estate_iam.adapter.services.bcrypt_secret_hasher import BcryptSecretHasher
from estate_iam.adapter.services.jwt_token_service import JwtTokenService
from estate_iam.adapter.services.redis_ephemeral_store import RedisEphemeralStore
from estate_iam.adapter.services.smtp_email_dispatcher import SmtpEmailDispatcher
from estate_iam.app.services.errors import StoreUnavailableError
from .error import ClientError, ServerError

logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _error_body(code: str, message: str, details: dict = None) -> dict:
    error_dict = {"code": code, "message": message}
    if details:
        error_dict["details"] = details
    return {"error": error_dict}


async def handle_client_error(request: Request, exc: ClientError):
    error = exc.base_error
    logger.warning(f"Client error: {error.code} {request.method} {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(error.code, error.message, error.details),
        headers=exc.headers,
    )


async def handle_server_error(request: Request, exc: ServerError):
    logger.error(f"Server error: {exc.base_error.code} {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(exc.base_error.code, "Internal server error"),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    fields = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "VALIDATION_ERROR", "Validation failed. Please check your input.", {"fields": fields}
        ),
    )


async def handle_store_unavailable(request: Request, exc: Exception):
    logger.error(
        f"Store unavailable: {exc} {request.method} {request.url.path} ip={_client_ip(request)}"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(
            "STORE_UNAVAILABLE",
            "Service temporarily unavailable. Please try again later.",
            {"retryable": True},
        ),
        headers={"Retry-After": "1"},
    )


async def handle_integrity_error(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(
            "DUPLICATE_RECORD", "Duplicate record detected. Please use unique values."
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error: {request.method} {request.url.path} ip={_client_ip(request)}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "INTERNAL_ERROR", "An internal server error occurred. Please try again later."
        ),
    )


def create_app(ApplicationConfig) -> FastAPI:
    logging.basicConfig(level=ApplicationConfig.LOG_LEVEL)

    engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)
    ephemeral_store = RedisEphemeralStore.from_url(
        ApplicationConfig.REDIS_URL, socket_timeout=ApplicationConfig.REDIS_SOCKET_TIMEOUT
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Estate IAM started")
        yield
        await app.state.ephemeral_store.close()
        await engine.dispose()
        logger.info("Estate IAM stopped")

    app = FastAPI(title="Estate IAM", version="0.1.0", lifespan=lifespan)

    app.state.config = ApplicationConfig
    app.state.engine = engine
    app.state.session_factory = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    app.state.ephemeral_store = ephemeral_store
    app.state.secret_hasher = BcryptSecretHasher()
    app.state.token_service = JwtTokenService(
        ApplicationConfig.JWT_SECRET, ttl_hours=ApplicationConfig.SESSION_TTL_HOURS
    )
    app.state.email_dispatcher = SmtpEmailDispatcher(
        smtp_host=ApplicationConfig.SMTP_HOST,
        smtp_port=ApplicationConfig.SMTP_PORT,
        smtp_user=ApplicationConfig.SMTP_USER,
        smtp_password=ApplicationConfig.SMTP_PASSWORD,
        smtp_use_tls=ApplicationConfig.SMTP_USE_TLS,
        from_email=ApplicationConfig.MAIL_FROM,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from estate_iam.api.routes import accounts, auth, health_check, me

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(me.router, tags=["Me"])
    app.include_router(accounts.router, tags=["Accounts"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StoreUnavailableError, handle_store_unavailable)
    app.add_exception_handler(OperationalError, handle_store_unavailable)
    app.add_exception_handler(InterfaceError, handle_store_unavailable)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    return app
