from __future__ import annotations

import datetime as _dt

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Position

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def ensure_upsert_supported(dialect_name: str) -> None:
    if dialect_name not in _UPSERT_INSERTS:
        supported = ", ".join(sorted(_UPSERT_INSERTS))
        raise ValueError(f"Position upsert is not supported for dialect {dialect_name!r}; use one of: {supported}")


class PositionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_key(self, account_id: int, security: str) -> Position | None:
        return await self.session.get(Position, (account_id, security))

    async def apply_delta(self, account_id: int, security: str, delta: int, now: _dt.datetime) -> Position:
        """Add delta to the (account_id, security) position, creating it at zero first if missing.

        Runs as a single INSERT ... ON CONFLICT DO UPDATE so concurrent writers on the
        same key cannot lose an update.
        """
        insert = _UPSERT_INSERTS[self.session.get_bind().dialect.name]

        stmt = insert(Position).values(account_id=account_id, security=security, quantity=delta, updated=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Position.account_id, Position.security],
            set_={
                "quantity": Position.quantity + stmt.excluded.quantity,
                "updated": stmt.excluded.updated,
            },
        ).returning(Position)
        result = await self.session.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()

    async def list_by_account(self, account_id: int) -> list[Position]:
        stmt = select(Position).where(Position.account_id == account_id).order_by(Position.security.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Position))
        return int(result.scalar_one())
