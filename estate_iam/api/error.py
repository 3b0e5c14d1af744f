from typing import Dict, NoReturn, Optional

from fastapi import status
from estate_iam.libs.result import Error

# Business error code -> HTTP status. Codes missing here are server errors.
ERROR_STATUS: Dict[str, int] = {
    # ValidationError
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_ROLE": status.HTTP_400_BAD_REQUEST,
    "INVALID_PASSWORD": status.HTTP_400_BAD_REQUEST,
    # NotFound
    "ACCOUNT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "OTP_NOT_FOUND": status.HTTP_400_BAD_REQUEST,
    # Unauthorized
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "INVALID_OTP": status.HTTP_400_BAD_REQUEST,
    "INVALID_RESET_TOKEN": status.HTTP_401_UNAUTHORIZED,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    # Conflict
    "ACCOUNT_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "DUPLICATE_RECORD": status.HTTP_409_CONFLICT,
    # Expired
    "OTP_EXPIRED": status.HTTP_400_BAD_REQUEST,
    # TooManyAttempts
    "TOO_MANY_ATTEMPTS": status.HTTP_429_TOO_MANY_REQUESTS,
    # Upstream collaborators
    "EMAIL_DISPATCH_FAILED": status.HTTP_502_BAD_GATEWAY,
    "STORE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ClientError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


def raise_for_error(error: Error, overrides: Optional[Dict[str, int]] = None) -> NoReturn:
    """
    Raise the HTTP error for a failed use case result.

    Args:
        error: Error from ``Result.error``
        overrides: Per-route status codes taking precedence over ERROR_STATUS

    Raises:
        ClientError for known codes, ServerError otherwise
    """
    status_code = (overrides or {}).get(error.code, ERROR_STATUS.get(error.code))
    if status_code is None:
        raise ServerError(error)

    headers = None
    retry_after = error.details.get("retry_after_seconds")
    if retry_after is not None:
        headers = {"Retry-After": str(retry_after)}
    raise ClientError(error, status_code=status_code, headers=headers)
