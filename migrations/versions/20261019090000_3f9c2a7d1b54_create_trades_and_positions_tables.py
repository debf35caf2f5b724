"""create trades and positions tables

Revision ID: 3f9c2a7d1b54
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d1b54"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "trades",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("security", sa.String(length=15), nullable=False),
        sa.Column("side", sa.Enum("BUY", "SELL", name="trade_side"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("state", sa.Enum("NEW", "PROCESSING", "SETTLED", name="trade_state"), nullable=False),
        sa.Column("created", sa.DateTime(), nullable=False),
        sa.Column("updated", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_trades_account_id", "trades", ["account_id"])

    # One row per (account_id, security); quantity is the signed running total
    op.create_table(
        "positions",
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("security", sa.String(length=15), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("updated", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("account_id", "security"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("positions")
    op.drop_index("ix_trades_account_id", "trades")
    op.drop_table("trades")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS trade_state")
        op.execute("DROP TYPE IF EXISTS trade_side")
