from typing import Optional

from sqlmodel import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from estate_iam.app.repositories.otp_challenge_repository import IOtpChallengeRepository
from estate_iam.domain.entities import OtpChallenge


class OtpChallengeRepository(IOtpChallengeRepository):
    """OtpChallenge repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[OtpChallenge]:
        """Get the challenge issued to an email"""
        stmt = select(OtpChallenge).where(OtpChallenge.email == email.lower())
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def upsert(self, challenge: OtpChallenge) -> OtpChallenge:
        """Store a challenge, replacing any previous one for the same email"""
        challenge.email = challenge.email.lower()
        stored = await self.session.merge(challenge)
        await self.session.flush()
        return stored

    async def delete(self, email: str) -> bool:
        """Delete the challenge for an email; True if a row was removed"""
        stmt = delete(OtpChallenge).where(OtpChallenge.email == email.lower())
        result = await self.session.exec(stmt)
        await self.session.flush()
        return result.rowcount > 0
