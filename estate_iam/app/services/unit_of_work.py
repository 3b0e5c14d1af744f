from abc import ABC, abstractmethod

from estate_iam.app.repositories.account_repository import IAccountRepository
from estate_iam.app.repositories.otp_challenge_repository import IOtpChallengeRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    accounts: IAccountRepository
    otp_challenges: IOtpChallengeRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
