import asyncio
import os
import sys
from collections.abc import AsyncIterator
from typing import Any

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.clients.dto import Account, Security
from src.core.clients.interface import AbstractAccountClient, AbstractReferenceDataClient
from src.core.clients.publishers import InMemoryEventPublisher
from src.core.locks import KeyedLock
from src.core.services.order_processor import OrderProcessor
from src.models import Base, Position, Trade
from src.processor.uow import UnitOfWork

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

KNOWN_TICKERS = {"AAPL", "MSFT", "IBM", "GOOGL"}
KNOWN_ACCOUNTS = {22214, 52355, 62654}


@pytest.fixture()
def database_uri(tmp_path) -> str:
    """Per-test SQLite database file; SQLALCHEMY_TEST_DATABASE_URI points the suite elsewhere."""
    return os.environ.get("SQLALCHEMY_TEST_DATABASE_URI") or f"sqlite+aiosqlite:///{tmp_path / 'trades.db'}"


@pytest.fixture()
async def async_engine(database_uri: str) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(database_uri)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def async_session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=async_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def uow(async_session_factory: async_sessionmaker[AsyncSession]) -> UnitOfWork:
    return UnitOfWork(session_factory=async_session_factory)


class FakeReferenceDataClient(AbstractReferenceDataClient):
    """In-memory reference data; optionally slow or failing to exercise timeouts"""

    def __init__(self, tickers: set[str] | None = None) -> None:
        self.tickers = set(KNOWN_TICKERS if tickers is None else tickers)
        self.delay: float = 0.0
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def resolve_security(self, ticker: str) -> Security | None:
        self.calls.append(ticker)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if ticker not in self.tickers:
            return None
        return Security(ticker=ticker, company_name=f"{ticker} Inc.")


class FakeAccountClient(AbstractAccountClient):
    def __init__(self, accounts: set[int] | None = None) -> None:
        self.accounts = set(KNOWN_ACCOUNTS if accounts is None else accounts)
        self.delay: float = 0.0
        self.error: Exception | None = None
        self.calls: list[int] = []

    async def resolve_account(self, account_id: int) -> Account | None:
        self.calls.append(account_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if account_id not in self.accounts:
            return None
        return Account(id=account_id, display_name=f"Account {account_id}")


@pytest.fixture
def reference_data() -> FakeReferenceDataClient:
    return FakeReferenceDataClient()


@pytest.fixture
def accounts() -> FakeAccountClient:
    return FakeAccountClient()


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def position_locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def order_processor(
    uow: UnitOfWork,
    reference_data: FakeReferenceDataClient,
    accounts: FakeAccountClient,
    publisher: InMemoryEventPublisher,
    position_locks: KeyedLock,
) -> OrderProcessor:
    return OrderProcessor(
        uow_factory=uow,
        reference_data=reference_data,
        accounts=accounts,
        publisher=publisher,
        keyed_lock=position_locks,
        lookup_timeout=0.5,
    )


class DataManager:
    """Helper class for reading and seeding rows outside the service under test"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def trades(self, **filters: Any) -> list[Trade]:
        async with self.session_factory() as session:
            stmt = select(Trade).filter_by(**filters).order_by(Trade.created.asc())
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def positions(self, **filters: Any) -> list[Position]:
        async with self.session_factory() as session:
            stmt = select(Position).filter_by(**filters)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def position(self, account_id: int, security: str) -> Position | None:
        async with self.session_factory() as session:
            return await session.get(Position, (account_id, security))

    async def create_position(self, account_id: int, security: str, quantity: int) -> Position:
        position = Position(account_id=account_id, security=security, quantity=quantity)
        async with self.session_factory() as session:
            session.add(position)
            await session.commit()
        return position


@pytest.fixture
def test_data_manager(async_session_factory: async_sessionmaker[AsyncSession]) -> DataManager:
    return DataManager(async_session_factory)
