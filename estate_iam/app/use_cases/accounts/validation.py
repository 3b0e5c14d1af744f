"""
Field rules shared by every use case that creates or changes an account.
"""

import re
from typing import Optional

from estate_iam.domain.entities import AccountRole
from estate_iam.libs.result import Error, Result, Return

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")
MIN_PASSWORD_LENGTH = 8
# bcrypt only accepts up to 72 bytes
MAX_PASSWORD_BYTES = 72


def validate_password(password: str) -> Result[None]:
    if len(password) < MIN_PASSWORD_LENGTH:
        return Return.err(
            Error(
                "INVALID_PASSWORD",
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            )
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return Return.err(
            Error(
                "INVALID_PASSWORD",
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes long",
            )
        )
    return Return.ok(None)


def validate_role(role: str) -> Result[AccountRole]:
    try:
        return Return.ok(AccountRole(role))
    except ValueError:
        return Return.err(Error("INVALID_ROLE", "Invalid role specified."))


def validate_username(username: str) -> Result[None]:
    if not 3 <= len(username.strip()) <= 30:
        return Return.err(
            Error("VALIDATION_ERROR", "Username must be between 3 and 30 characters")
        )
    return Return.ok(None)


def validate_phone(phone: Optional[str]) -> Result[None]:
    if phone is not None and not PHONE_PATTERN.match(phone):
        return Return.err(Error("VALIDATION_ERROR", "Phone number must be 10 digits"))
    return Return.ok(None)


def validate_new_account(
    username: str, password: str, role: str, phone: Optional[str]
) -> Result[AccountRole]:
    """Run all field rules; first failure wins"""
    for check in (validate_username(username), validate_password(password), validate_phone(phone)):
        if check.is_err():
            return Return.err(check.error)
    return validate_role(role)
