from collections.abc import AsyncIterator

import aiohttp
from dishka import Scope
from dishka.provider import Provider, provide

from src.configs import AccountServiceSettings, LookupSettings, ReferenceDataSettings
from src.core.clients.interface import AbstractAccountClient, AbstractReferenceDataClient
from src.core.clients.traderx_http import AccountHttpClient, ReferenceDataHttpClient


class HttpClientProvider(Provider):
    @provide(scope=Scope.APP, provides=aiohttp.ClientSession)
    async def create_http_session(self, cfg: LookupSettings) -> AsyncIterator[aiohttp.ClientSession]:
        session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=cfg.TIMEOUT_SECONDS))
        yield session
        if not session.closed:
            await session.close()


class LookupClientProvider(Provider):
    @provide(scope=Scope.REQUEST)
    def create_reference_data_client(
        self,
        cfg: ReferenceDataSettings,
        session: aiohttp.ClientSession,
    ) -> AbstractReferenceDataClient:
        return ReferenceDataHttpClient(base_url=cfg.URL, session=session)

    @provide(scope=Scope.REQUEST)
    def create_account_client(
        self,
        cfg: AccountServiceSettings,
        session: aiohttp.ClientSession,
    ) -> AbstractAccountClient:
        return AccountHttpClient(base_url=cfg.URL, session=session)
