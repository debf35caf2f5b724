"""Trade booking REST API."""

import logging

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, Query

from src.core.dto import PositionView, TradeBookingResult, TradeOrder, TradeView
from src.core.services.booking_query import BookingQueryService
from src.core.services.order_processor import OrderProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tradeservice", tags=["trades"], route_class=DishkaRoute)


@router.post("/order", response_model=TradeBookingResult)
async def process_order(order: TradeOrder, processor: FromDishka[OrderProcessor]) -> TradeBookingResult:
    return await processor.process_order(order)


@router.get("/trades", response_model=list[TradeView])
async def list_trades(
    query: FromDishka[BookingQueryService],
    account_id: int | None = Query(default=None, alias="accountId"),
) -> list[TradeView]:
    return await query.list_trades(account_id)


@router.get("/trades/{trade_id}", response_model=TradeView)
async def get_trade(trade_id: str, query: FromDishka[BookingQueryService]) -> TradeView:
    trade = await query.get_trade(trade_id)
    if trade is None:
        raise HTTPException(status_code=404, detail=f"Trade {trade_id} not found")
    return trade


@router.get("/positions/{account_id}", response_model=list[PositionView])
async def list_positions(account_id: int, query: FromDishka[BookingQueryService]) -> list[PositionView]:
    return await query.list_positions(account_id)


health_router = APIRouter(tags=["system"])


@health_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
