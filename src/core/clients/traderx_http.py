import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from src.core.clients.dto import Account, Security
from src.core.clients.interface import AbstractAccountClient, AbstractReferenceDataClient
from src.core.exceptions import LookupTransportError

logger = logging.getLogger(__name__)


class _ServiceHttpClient:
    def __init__(self, base_url: str, session: aiohttp.ClientSession | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or aiohttp.ClientSession()
        self._owns_session = session is None

    async def _get(self, endpoint: str) -> dict[str, Any] | None:
        """GET a JSON object; None on 404, LookupTransportError for any other failure or a non-object body"""
        url = f"{self._base_url}{endpoint}"
        try:
            async with self._session.get(url, headers={"Accept": "application/json"}) as response:
                if response.status == 404:
                    return None
                if response.status >= 400:
                    body = await response.text()
                    raise LookupTransportError(f"GET {url} returned {response.status}: {body[:200]}")
                data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise LookupTransportError(f"GET {url} failed: {e}") from e
        except ValueError as e:
            raise LookupTransportError(f"GET {url} returned a body that is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise LookupTransportError(f"GET {url} returned {type(data).__name__}, expected a JSON object")
        return data

    async def close(self) -> None:
        """Close the aiohttp session if we own it"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()


class ReferenceDataHttpClient(_ServiceHttpClient, AbstractReferenceDataClient):
    async def resolve_security(self, ticker: str) -> Security | None:
        data = await self._get(f"/stocks/{quote(ticker, safe='')}")
        if data is None:
            logger.info(f"{ticker} not found in reference data service")
            return None
        logger.debug(f"Validated ticker {ticker}: {data}")
        return Security(
            ticker=data.get("ticker", ticker),
            company_name=data.get("companyName"),
        )


class AccountHttpClient(_ServiceHttpClient, AbstractAccountClient):
    async def resolve_account(self, account_id: int) -> Account | None:
        data = await self._get(f"/account/{account_id}")
        if data is None:
            logger.info(f"Account {account_id} not found in account service")
            return None
        logger.debug(f"Validated account {account_id}: {data}")
        try:
            resolved_id = int(data.get("id", account_id))
        except (TypeError, ValueError) as e:
            raise LookupTransportError(f"Account service returned a malformed id for {account_id}: {data!r}") from e
        return Account(id=resolved_id, display_name=data.get("displayName"))
