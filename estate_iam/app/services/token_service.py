from abc import ABC, abstractmethod
from typing import Optional

from estate_iam.domain.entities import Account


class ITokenService(ABC):
    """Issues and verifies signed, time-bounded session tokens"""

    @abstractmethod
    def issue(self, account: Account) -> str:
        """Sign {account_id, username, role} for the configured validity window"""
        pass

    @abstractmethod
    def verify(self, token: str) -> Optional[dict]:
        """Decoded claims, or None if the token is invalid or expired"""
        pass
