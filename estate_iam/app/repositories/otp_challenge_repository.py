from abc import ABC, abstractmethod
from typing import Optional

from estate_iam.domain.entities import OtpChallenge


class IOtpChallengeRepository(ABC):
    """OtpChallenge repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[OtpChallenge]:
        """Get the challenge issued to an email"""
        pass

    @abstractmethod
    async def upsert(self, challenge: OtpChallenge) -> OtpChallenge:
        """Store a challenge, replacing any previous one for the same email"""
        pass

    @abstractmethod
    async def delete(self, email: str) -> bool:
        """Delete the challenge for an email; True if a row was removed"""
        pass
