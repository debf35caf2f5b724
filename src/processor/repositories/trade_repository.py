from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Trade


class TradeRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, trade_id: str) -> Trade | None:
        return await self.session.get(Trade, trade_id)

    async def add(self, trade: Trade) -> Trade:
        self.session.add(trade)
        await self.session.flush()
        return trade

    async def save(self, trade: Trade) -> Trade:
        """Flush pending changes of an already attached trade."""
        await self.session.flush()
        return trade

    async def list_all(self, limit: int | None = None) -> list[Trade]:
        stmt = select(Trade).order_by(Trade.created.asc(), Trade.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_account(self, account_id: int) -> list[Trade]:
        stmt = select(Trade).where(Trade.account_id == account_id).order_by(Trade.created.asc(), Trade.id.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Trade))
        return int(result.scalar_one())
