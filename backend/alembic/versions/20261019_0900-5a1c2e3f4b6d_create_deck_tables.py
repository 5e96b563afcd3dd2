"""create_deck_tables

Revision ID: 5a1c2e3f4b6d
Revises:
Create Date: 2026-10-19 09:00:00.000000

Stock Deck Database Migration
Creates decks, deck_stocks, notifications and the strategies catalog,
and seeds the default strategies.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5a1c2e3f4b6d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

SEED_STRATEGIES = [
    {
        "key": "ma-cross",
        "name": "MA Cross",
        "description": "Moving Average Crossover Strategy",
        "config": {"short_ma": 10, "long_ma": 20},
    },
    {
        "key": "rsi-momentum",
        "name": "RSI Momentum",
        "description": "RSI-based momentum strategy",
        "config": {"rsi_period": 14, "oversold": 30, "overbought": 70},
    },
]


def upgrade() -> None:
    """Create deck tables with indexes and seed the strategy catalog."""
    op.create_table(
        "decks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("settings", JSON_TYPE, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_decks_id", "decks", ["id"])
    op.create_index("ix_decks_user_id", "decks", ["user_id"])
    op.create_index("ix_decks_created_at", "decks", ["created_at"])
    op.create_index("ix_decks_updated_at", "decks", ["updated_at"])

    op.create_table(
        "deck_stocks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("deck_id", sa.Integer(), sa.ForeignKey("decks.id"), nullable=False),
        sa.Column("symbol", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="watching"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("target_price", sa.Float(), nullable=True),
        sa.Column("stop_loss", sa.Float(), nullable=True),
        sa.Column("position_size", sa.Float(), nullable=True),
        sa.Column("tags", JSON_TYPE, nullable=False),
        sa.Column("applied_strategy_ids", JSON_TYPE, nullable=False),
        sa.Column("performance_snapshot", JSON_TYPE, nullable=True),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("deck_id", "symbol", name="uq_deck_stocks_deck_symbol"),
    )
    op.create_index("ix_deck_stocks_id", "deck_stocks", ["id"])
    op.create_index("ix_deck_stocks_deck_id", "deck_stocks", ["deck_id"])
    op.create_index("ix_deck_stocks_symbol", "deck_stocks", ["symbol"])
    op.create_index("ix_deck_stocks_created_at", "deck_stocks", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", JSON_TYPE, nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"])

    strategies = op.create_table(
        "strategies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("config", JSON_TYPE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_strategies_id", "strategies", ["id"])
    op.create_index("ix_strategies_created_at", "strategies", ["created_at"])

    op.bulk_insert(
        strategies,
        [
            {**row, "is_active": True}
            for row in SEED_STRATEGIES
        ],
    )


def downgrade() -> None:
    """Drop deck tables."""
    op.drop_table("strategies")
    op.drop_table("notifications")
    op.drop_table("deck_stocks")
    op.drop_table("decks")
