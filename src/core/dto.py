import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.core.enums import TradeSide, TradeState

# quantities and positions are stored in 32-bit integer columns
MAX_QUANTITY = 2**31 - 1


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TradeOrder(CamelModel):
    id: str | None = None
    account_id: int
    security: str = Field(min_length=1, max_length=15)
    side: TradeSide
    quantity: int = Field(gt=0, le=MAX_QUANTITY)

    @field_validator("security", mode="before")
    @classmethod
    def _strip_security(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class TradeView(CamelModel):
    id: str
    account_id: int
    security: str
    side: TradeSide
    quantity: int
    state: TradeState
    created: datetime.datetime
    updated: datetime.datetime


class PositionView(CamelModel):
    account_id: int
    security: str
    quantity: int
    updated: datetime.datetime


class TradeBookingResult(CamelModel):
    trade: TradeView
    position: PositionView
    # True when the order id was already booked and the stored trade is returned as-is
    duplicate: bool = False
