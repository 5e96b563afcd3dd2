"""Strategy catalog model.

Strategies are opaque to this service: decks only record that a strategy
key has been applied to a symbol. The catalog exists so the UI can list
what is available.
"""

from typing import Any

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stockdeck.models.base import Base, JSONType


class Strategy(Base):
    """An available trading strategy definition."""

    __tablename__ = "strategies"

    key: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        doc="Identifier used in DeckStock.applied_strategy_ids"
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    config: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
