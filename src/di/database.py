from collections.abc import AsyncIterator

from dishka import Provider, Scope, provide
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.processor.config.settings import ProcessorSettings
from src.processor.repositories.position_repository import ensure_upsert_supported
from src.processor.uow import UnitOfWork


class DatabaseProvider(Provider):
    @provide(scope=Scope.APP)
    async def create_engine(self, cfg: ProcessorSettings) -> AsyncIterator[AsyncEngine]:
        async_dsn = cfg.database_uri
        ensure_upsert_supported(make_url(async_dsn).get_backend_name())
        connect_args = {}
        if async_dsn.startswith("postgresql+asyncpg://"):
            connect_args["server_settings"] = {"timezone": "UTC"}
        engine = create_async_engine(
            async_dsn,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def create_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return async_sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @provide(scope=Scope.APP)
    def create_unit_of_work(self, session_factory: async_sessionmaker[AsyncSession]) -> UnitOfWork:
        return UnitOfWork(session_factory=session_factory)
