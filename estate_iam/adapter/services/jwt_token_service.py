from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from estate_iam.app.services.token_service import ITokenService
from estate_iam.domain.entities import Account


class JwtTokenService(ITokenService):
    """HS256 session tokens signed with a server-held secret"""

    algorithm = "HS256"

    def __init__(self, secret: str, ttl_hours: int = 24):
        self.secret = secret
        self.ttl = timedelta(hours=ttl_hours)

    def issue(self, account: Account) -> str:
        """
        Generate JWT session token

        Args:
            account: Authenticated account

        Returns:
            JWT token string (HS256, ``ttl_hours`` expiry)
        """
        now = datetime.now(UTC)
        role = account.role.value if hasattr(account.role, "value") else account.role
        payload = {
            "account_id": str(account.id),
            "username": account.username,
            "role": role,
            "exp": now + self.ttl,
            "iat": now,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[dict]:
        """
        Verify and decode JWT token

        Args:
            token: JWT token string

        Returns:
            Decoded payload dict or None if invalid
        """
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            return None
