import asyncio
import logging
from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from uuid_extensions import uuid7

from src.core.clients.interface import AbstractAccountClient, AbstractEventPublisher, AbstractReferenceDataClient
from src.core.dto import MAX_QUANTITY, PositionView, TradeBookingResult, TradeOrder, TradeView
from src.core.enums import TradeSide, TradeState
from src.core.exceptions import (
    AccountLookupUnavailable,
    InvalidOrder,
    LookupTransportError,
    SecurityLookupUnavailable,
    StorageFailure,
    UnknownAccount,
    UnknownSecurity,
)
from src.core.locks import KeyedLock
from src.models import Position, Trade, utcnow
from src.processor.uow import UoWSession

logger = logging.getLogger(__name__)


class UnitOfWorkFactory(Protocol):
    """Protocol for UnitOfWork factory"""

    def __call__(self) -> AbstractAsyncContextManager[UoWSession]: ...


class OrderProcessor:
    """Books trade orders: validates them, records the trade and moves the account position"""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        reference_data: AbstractReferenceDataClient,
        accounts: AbstractAccountClient,
        publisher: AbstractEventPublisher,
        keyed_lock: KeyedLock | None = None,
        lookup_timeout: float = 5.0,
    ) -> None:
        self._uow_factory = uow_factory
        self._reference_data = reference_data
        self._accounts = accounts
        self._publisher = publisher
        self._keyed_lock = keyed_lock or KeyedLock()
        self._lookup_timeout = lookup_timeout

    async def process_order(self, order: TradeOrder | Mapping[str, Any]) -> TradeBookingResult:
        order = self._validate_order(order)
        logger.info(f"Trade order received: {order!r}")

        await self._validate_security(order.security)
        await self._validate_account(order.account_id)

        trade_id = order.id.strip() if order.id and order.id.strip() else str(uuid7())
        async with self._keyed_lock((order.account_id, order.security)):
            result = await self._book(trade_id, order)

        if result.duplicate:
            logger.info(f"Trade {trade_id} was already booked; returning stored result")
            return result

        logger.info(
            f"Trade processing complete: {trade_id} {order.side.value} {order.quantity} {order.security}, "
            f"position for account {order.account_id} is now {result.position.quantity}"
        )
        await self._publish(result)
        return result

    @staticmethod
    def _validate_order(order: TradeOrder | Mapping[str, Any]) -> TradeOrder:
        if not isinstance(order, TradeOrder):
            try:
                order = TradeOrder.model_validate(order)
            except ValidationError as e:
                raise InvalidOrder(f"Malformed trade order: {e.errors(include_url=False)}") from e

        # model_construct() skips field validation, so the invariants are checked again here
        if not isinstance(order.side, TradeSide):
            raise InvalidOrder(f"Unknown trade side: {order.side!r}")
        quantity = order.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 0 < quantity <= MAX_QUANTITY:
            raise InvalidOrder(f"Quantity must be an integer between 1 and {MAX_QUANTITY}, got {order.quantity!r}")
        if not order.security:
            raise InvalidOrder("Security must not be empty")
        return order

    async def _validate_security(self, ticker: str) -> None:
        try:
            async with asyncio.timeout(self._lookup_timeout):
                security = await self._reference_data.resolve_security(ticker)
        except (TimeoutError, LookupTransportError) as e:
            logger.warning(f"Reference data lookup failed for {ticker}: {e!r}")
            raise SecurityLookupUnavailable(ticker) from e

        if security is None:
            raise UnknownSecurity(ticker)

    async def _validate_account(self, account_id: int) -> None:
        try:
            async with asyncio.timeout(self._lookup_timeout):
                account = await self._accounts.resolve_account(account_id)
        except (TimeoutError, LookupTransportError) as e:
            logger.warning(f"Account lookup failed for {account_id}: {e!r}")
            raise AccountLookupUnavailable(account_id) from e

        if account is None:
            raise UnknownAccount(account_id)

    async def _book(self, trade_id: str, order: TradeOrder) -> TradeBookingResult:
        """Record the trade and its position change in one transaction."""
        try:
            async with self._uow_factory() as uow:
                existing = await uow.trades.get(trade_id)
                if existing is not None:
                    position = await uow.positions.find_by_key(existing.account_id, existing.security)
                    return self._result(existing, position, duplicate=True)

                now = utcnow()
                trade = Trade(
                    id=trade_id,
                    account_id=order.account_id,
                    security=order.security,
                    side=order.side,
                    quantity=order.quantity,
                    state=TradeState.NEW,
                    created=now,
                    updated=now,
                )
                await uow.trades.add(trade)

                delta = order.side.sign * order.quantity
                position = await uow.positions.apply_delta(order.account_id, order.security, delta, now)
                logger.debug(f"Applied {delta:+d} to {position!r}")

                for state in (TradeState.PROCESSING, TradeState.SETTLED):
                    trade.state = state
                    trade.updated = utcnow()
                    await uow.trades.save(trade)

                result = self._result(trade, position)
        except IntegrityError as e:
            # Another writer booked the same trade id between our read and insert
            logger.warning(f"Trade id {trade_id} collided on insert: {e.orig!r}")
            return await self._load_duplicate(trade_id, e)
        except DataError as e:
            # A value the columns reject, such as a position pushed past the integer range
            logger.error(f"Trade {trade_id} rejected by the database: {e.orig!r}")
            raise InvalidOrder(f"Trade {trade_id} cannot be stored: {e.orig}") from e
        except SQLAlchemyError as e:
            logger.exception(f"Failed to persist trade {trade_id}")
            raise StorageFailure(f"Failed to persist trade {trade_id}: {e}") from e
        return result

    async def _load_duplicate(self, trade_id: str, cause: IntegrityError) -> TradeBookingResult:
        try:
            async with self._uow_factory() as uow:
                existing = await uow.trades.get(trade_id)
                if existing is None:
                    raise StorageFailure(f"Failed to persist trade {trade_id}: {cause}") from cause
                position = await uow.positions.find_by_key(existing.account_id, existing.security)
                return self._result(existing, position, duplicate=True)
        except SQLAlchemyError as e:
            raise StorageFailure(f"Failed to load trade {trade_id}: {e}") from e

    @staticmethod
    def _result(trade: Trade, position: Position | None, duplicate: bool = False) -> TradeBookingResult:
        if position is None:
            # A stored trade always has a position row; keep the view total anyway
            position = Position(account_id=trade.account_id, security=trade.security, quantity=0, updated=trade.updated)
        return TradeBookingResult(
            trade=TradeView.model_validate(trade),
            position=PositionView.model_validate(position),
            duplicate=duplicate,
        )

    async def _publish(self, result: TradeBookingResult) -> None:
        account_id = result.trade.account_id
        events = (
            (f"/accounts/{account_id}/trades", result.trade),
            (f"/accounts/{account_id}/positions", result.position),
        )
        for topic, payload in events:
            try:
                await self._publisher.publish(topic, payload)
            except Exception:
                logger.exception(f"Error publishing {type(payload).__name__} for trade {result.trade.id} to {topic}")
