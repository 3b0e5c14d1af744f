from abc import ABC, abstractmethod


class IEmailDispatcher(ABC):
    """Outbound email transport"""

    @abstractmethod
    async def send(self, to: str, subject: str, html: str) -> bool:
        """True if the message was handed to the transport, False otherwise"""
        pass
