from abc import ABC, abstractmethod

from pydantic import BaseModel

from .dto import Account, Security


class AbstractReferenceDataClient(ABC):
    @abstractmethod
    async def resolve_security(self, ticker: str) -> Security | None:
        """Return the security for ticker, or None when reference data does not know it."""


class AbstractAccountClient(ABC):
    @abstractmethod
    async def resolve_account(self, account_id: int) -> Account | None:
        pass


class AbstractEventPublisher(ABC):
    @abstractmethod
    async def publish(self, topic: str, payload: BaseModel) -> None:
        pass
