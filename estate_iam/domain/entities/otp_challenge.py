"""
OtpChallenge Entity

Registration codes proving control of an email address.
"""

from datetime import datetime

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from ..base import utcnow
from .enums import ChallengeState


class OtpChallenge(SQLModel, table=True):
    """
    OtpChallenge entity - one live registration code per email.

    Business Rules:
    - Keyed by email, so issuing a new code replaces the previous one
    - Code is a 6-digit number, stored only as a bcrypt hash
    - Expires 10 minutes after issue
    - Single-use: the row is deleted on successful verification
    """

    __tablename__ = "otp_challenges"

    email: str = Field(primary_key=True, max_length=255)
    code_hash: str = Field(max_length=60)

    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_otp_challenge_expires_at", "expires_at"),)

    def state_at(self, now: datetime) -> ChallengeState:
        """Consumed challenges are deleted, so a loaded row is never consumed"""
        if now > self.expires_at:
            return ChallengeState.expired
        return ChallengeState.active
