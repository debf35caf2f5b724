from src.core.dto import PositionView, TradeView
from src.core.services.order_processor import UnitOfWorkFactory


class BookingQueryService:
    """Read side for trades and positions"""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    async def list_trades(self, account_id: int | None = None) -> list[TradeView]:
        async with self._uow_factory() as uow:
            if account_id is None:
                trades = await uow.trades.list_all()
            else:
                trades = await uow.trades.list_by_account(account_id)
            return [TradeView.model_validate(trade) for trade in trades]

    async def get_trade(self, trade_id: str) -> TradeView | None:
        async with self._uow_factory() as uow:
            trade = await uow.trades.get(trade_id)
            return TradeView.model_validate(trade) if trade is not None else None

    async def list_positions(self, account_id: int) -> list[PositionView]:
        async with self._uow_factory() as uow:
            positions = await uow.positions.list_by_account(account_id)
            return [PositionView.model_validate(position) for position in positions]
