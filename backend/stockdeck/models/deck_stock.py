"""DeckStock model: one symbol tracked inside a deck."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stockdeck.models.base import Base, JSONType, utc_now


class StockStatus(str, Enum):
    """Lifecycle of a stock inside a deck.

    WATCHING -> STRATEGY_APPLIED happens automatically on the first applied
    strategy. Every other transition is an explicit user update.
    """

    WATCHING = "watching"
    ACTIVE = "active"
    STRATEGY_APPLIED = "strategy_applied"
    ARCHIVED = "archived"


class DeckStock(Base):
    """A stock symbol inside a deck, with the user's metadata.

    ``performance_snapshot`` holds the last refreshed quote:
    ``{"current_price", "as_of", "entry_price", "return_percent"}``.
    """

    __tablename__ = "deck_stocks"
    __table_args__ = (
        UniqueConstraint("deck_id", "symbol", name="uq_deck_stocks_deck_symbol"),
    )

    deck_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("decks.id"),
        nullable=False,
        index=True,
    )

    symbol: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StockStatus.WATCHING.value,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    stop_loss: Mapped[float | None] = mapped_column(Float, nullable=True)
    position_size: Mapped[float | None] = mapped_column(Float, nullable=True)

    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    applied_strategy_ids: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        doc="Strategy ids in the order they were applied"
    )

    performance_snapshot: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )

    last_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    @property
    def added_at(self) -> datetime:
        return self.created_at
