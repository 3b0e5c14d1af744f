from sqlmodel.ext.asyncio.session import AsyncSession

from estate_iam.adapter.repositories.account_repository import AccountRepository
from estate_iam.adapter.repositories.otp_challenge_repository import OtpChallengeRepository
from estate_iam.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.accounts = AccountRepository(self.session)
        self.otp_challenges = OtpChallengeRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
