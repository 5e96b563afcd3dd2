"""Deck model for user-owned collections of stocks."""

from enum import Enum
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stockdeck.models.base import Base, JSONType, TimestampMixin


class DeckType(str, Enum):
    """Kinds of deck a user can create."""

    WATCHLIST = "watchlist"
    PORTFOLIO = "portfolio"
    STRATEGY = "strategy"
    RESEARCH = "research"
    CUSTOM = "custom"


class Deck(TimestampMixin, Base):
    """A named collection of stocks owned by one user.

    Stocks live in the ``deck_stocks`` table keyed by (deck_id, symbol) and
    are only removed through DeckService.delete_deck / remove_stock.
    """

    __tablename__ = "decks"

    user_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        doc="User who owns this deck"
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Display name for the deck"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    deck_type: Mapped[str] = mapped_column(
        "type",
        String(20),
        nullable=False,
        default=DeckType.WATCHLIST.value,
        doc="One of DeckType"
    )

    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    settings: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        doc="Free-form per-deck display settings"
    )
