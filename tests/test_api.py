from collections.abc import AsyncIterator

import httpx
import pytest
from dishka import Provider, Scope, make_async_container, provide
from fastapi import FastAPI

from src.api.app import create_app, status_for
from src.configs import LookupSettings
from src.core.clients.interface import AbstractAccountClient, AbstractEventPublisher, AbstractReferenceDataClient
from src.core.clients.publishers import InMemoryEventPublisher
from src.core.exceptions import (
    AccountLookupUnavailable,
    InvalidOrder,
    SecurityLookupUnavailable,
    StorageFailure,
    UnknownAccount,
    UnknownSecurity,
)
from src.di.service import ServiceProvider
from src.processor.uow import UnitOfWork


class InfrastructureStubProvider(Provider):
    """Hands ready-made test doubles to the real ServiceProvider"""

    scope = Scope.APP

    def __init__(
        self,
        uow: UnitOfWork,
        reference_data: AbstractReferenceDataClient,
        accounts: AbstractAccountClient,
        publisher: AbstractEventPublisher,
    ) -> None:
        super().__init__()
        self._uow = uow
        self._reference_data = reference_data
        self._accounts = accounts
        self._publisher = publisher

    @provide
    def get_lookup_settings(self) -> LookupSettings:
        return LookupSettings(TIMEOUT_SECONDS=0.5)

    @provide
    def get_uow(self) -> UnitOfWork:
        return self._uow

    @provide
    def get_reference_data(self) -> AbstractReferenceDataClient:
        return self._reference_data

    @provide
    def get_accounts(self) -> AbstractAccountClient:
        return self._accounts

    @provide
    def get_publisher(self) -> AbstractEventPublisher:
        return self._publisher


@pytest.fixture
async def app(
    uow: UnitOfWork,
    reference_data: AbstractReferenceDataClient,
    accounts: AbstractAccountClient,
    publisher: InMemoryEventPublisher,
) -> AsyncIterator[FastAPI]:
    container = make_async_container(
        InfrastructureStubProvider(uow, reference_data, accounts, publisher),
        ServiceProvider(),
    )
    try:
        yield create_app(container)
    finally:
        await container.close()


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


def _order(**overrides) -> dict:
    body = {"accountId": 22214, "security": "AAPL", "side": "Buy", "quantity": 10}
    body.update(overrides)
    return body


@pytest.mark.parametrize(
    ("exc", "status_code"),
    [
        (UnknownSecurity("ZZZZ"), 404),
        (UnknownAccount(1), 404),
        (SecurityLookupUnavailable("AAPL"), 503),
        (AccountLookupUnavailable(22214), 503),
        (StorageFailure("disk full"), 503),
        (InvalidOrder("bad side"), 422),
    ],
)
def test_status_for(exc, status_code: int) -> None:
    assert status_for(exc) == status_code


@pytest.mark.asyncio
async def test_health(client: httpx.AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_post_order_books_trade(client: httpx.AsyncClient, publisher: InMemoryEventPublisher) -> None:
    response = await client.post("/tradeservice/order", json=_order(id="api-1", side="Sell", quantity=25))

    assert response.status_code == 200
    body = response.json()
    assert body["duplicate"] is False
    assert body["trade"]["id"] == "api-1"
    assert body["trade"]["accountId"] == 22214
    assert body["trade"]["side"] == "Sell"
    assert body["trade"]["state"] == "Settled"
    assert body["position"] == {
        "accountId": 22214,
        "security": "AAPL",
        "quantity": -25,
        "updated": body["position"]["updated"],
    }
    assert publisher.topics() == ["/accounts/22214/trades", "/accounts/22214/positions"]


@pytest.mark.asyncio
async def test_post_order_repeated_id_is_duplicate(client: httpx.AsyncClient) -> None:
    first = await client.post("/tradeservice/order", json=_order(id="api-dup"))
    second = await client.post("/tradeservice/order", json=_order(id="api-dup"))

    assert first.status_code == second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["position"]["quantity"] == 10


@pytest.mark.asyncio
async def test_post_order_unknown_security_is_404(client: httpx.AsyncClient) -> None:
    response = await client.post("/tradeservice/order", json=_order(security="ZZZZ"))

    assert response.status_code == 404
    assert response.json()["error"] == "UnknownSecurity"
    assert response.json()["retryable"] is False


@pytest.mark.asyncio
async def test_post_order_unknown_account_is_404(client: httpx.AsyncClient) -> None:
    response = await client.post("/tradeservice/order", json=_order(accountId=1))

    assert response.status_code == 404
    assert response.json()["error"] == "UnknownAccount"


@pytest.mark.asyncio
async def test_post_order_lookup_unavailable_is_503(
    client: httpx.AsyncClient, accounts: AbstractAccountClient, test_data_manager
) -> None:
    accounts.delay = 2.0

    response = await client.post("/tradeservice/order", json=_order())

    assert response.status_code == 503
    assert response.json()["error"] == "AccountLookupUnavailable"
    assert response.json()["retryable"] is True
    assert await test_data_manager.trades() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        _order(side="Hold"),
        _order(quantity=0),
        _order(quantity=-5),
        _order(quantity=3_000_000_000),
        _order(security=""),
        {"security": "AAPL", "side": "Buy", "quantity": 1},
    ],
)
async def test_post_order_malformed_is_422(client: httpx.AsyncClient, body: dict, test_data_manager) -> None:
    response = await client.post("/tradeservice/order", json=body)

    assert response.status_code == 422
    assert await test_data_manager.trades() == []


@pytest.mark.asyncio
async def test_trade_and_position_queries(client: httpx.AsyncClient) -> None:
    await client.post("/tradeservice/order", json=_order(id="q-1", quantity=100))
    await client.post("/tradeservice/order", json=_order(id="q-2", side="Sell", quantity=40))
    await client.post("/tradeservice/order", json=_order(id="q-3", accountId=52355, security="MSFT"))

    all_trades = await client.get("/tradeservice/trades")
    account_trades = await client.get("/tradeservice/trades", params={"accountId": 22214})
    trade = await client.get("/tradeservice/trades/q-2")
    missing = await client.get("/tradeservice/trades/nope")
    positions = await client.get("/tradeservice/positions/22214")

    assert {t["id"] for t in all_trades.json()} == {"q-1", "q-2", "q-3"}
    assert {t["id"] for t in account_trades.json()} == {"q-1", "q-2"}
    assert trade.json()["side"] == "Sell"
    assert missing.status_code == 404
    assert [(p["security"], p["quantity"]) for p in positions.json()] == [("AAPL", 60)]
