from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.processor.repositories.position_repository import PositionRepository
from src.processor.repositories.trade_repository import TradeRepository


class UnitOfWork:
    """Opens one transaction per `async with uow() as s:` block.

    The transaction commits when the block exits normally and rolls back on any exception.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator[UoWSession]:
        session: AsyncSession = self._session_factory()
        try:
            async with session.begin():
                yield UoWSession(session)
        finally:
            await session.close()


class UoWSession:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.trades = TradeRepository(session=session)
        self.positions = PositionRepository(session=session)
