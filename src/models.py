import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)
from sqlalchemy.types import TypeDecorator

from src.core.enums import TradeSide, TradeState


class Base(DeclarativeBase):
    pass


class UTCNaiveDateTime(TypeDecorator):
    """Store datetimes as naive UTC in the DB (TIMESTAMP WITHOUT TIME ZONE).

    - On bind: convert aware datetimes to UTC and drop tzinfo; leave naive as-is.
    - On result: return the naive datetime as stored.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime.datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            return value.astimezone(datetime.UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime.datetime | None, dialect):
        return value


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


class Trade(Base):
    __tablename__ = "trades"
    __table_args__ = (Index("ix_trades_account_id", "account_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False)
    security: Mapped[str] = mapped_column(String(15), nullable=False)
    side: Mapped[TradeSide] = mapped_column(Enum(TradeSide, name="trade_side"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[TradeState] = mapped_column(
        Enum(TradeState, name="trade_state"), default=TradeState.NEW, nullable=False
    )
    created: Mapped[datetime.datetime] = mapped_column(UTCNaiveDateTime(), default=utcnow, nullable=False)
    updated: Mapped[datetime.datetime] = mapped_column(UTCNaiveDateTime(), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"Trade(id={self.id!r}, account_id={self.account_id}, security={self.security!r}, "
            f"side={self.side}, quantity={self.quantity}, state={self.state})"
        )


class Position(Base):
    """Signed running quantity per (account, security); positive is long, negative is short"""

    __tablename__ = "positions"

    account_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    security: Mapped[str] = mapped_column(String(15), primary_key=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated: Mapped[datetime.datetime] = mapped_column(UTCNaiveDateTime(), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Position(account_id={self.account_id}, security={self.security!r}, quantity={self.quantity})"
