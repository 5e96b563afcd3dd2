"""Repository for DeckStock database operations."""

from collections.abc import Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from stockdeck.models.deck import Deck
from stockdeck.models.deck_stock import DeckStock
from stockdeck.repositories.base import BaseRepository


class DeckStockRepository(BaseRepository[DeckStock]):
    """Repository for the stocks inside decks."""

    def __init__(self, session: AsyncSession):
        super().__init__(DeckStock, session)

    async def get_by_deck(self, deck_id: int) -> Sequence[DeckStock]:
        """Get all stocks of a deck in the order they were added."""
        result = await self.session.execute(
            select(DeckStock)
            .where(DeckStock.deck_id == deck_id)
            .order_by(DeckStock.created_at, DeckStock.id)
        )
        return result.scalars().all()

    async def get_by_symbol(self, deck_id: int, symbol: str) -> DeckStock | None:
        """Get one stock by its (deck_id, symbol) key."""
        result = await self.session.execute(
            select(DeckStock)
            .where(DeckStock.deck_id == deck_id)
            .where(DeckStock.symbol == symbol)
        )
        return result.scalar_one_or_none()

    async def count_by_deck(self, deck_id: int) -> int:
        """Count the stocks currently in a deck."""
        result = await self.session.execute(
            select(func.count()).select_from(DeckStock).where(DeckStock.deck_id == deck_id)
        )
        return result.scalar() or 0

    async def count_by_decks(self, deck_ids: Sequence[int]) -> dict[int, int]:
        """Count stocks for several decks at once. Missing decks map to 0."""
        if not deck_ids:
            return {}
        result = await self.session.execute(
            select(DeckStock.deck_id, func.count())
            .where(DeckStock.deck_id.in_(deck_ids))
            .group_by(DeckStock.deck_id)
        )
        counts = {deck_id: 0 for deck_id in deck_ids}
        counts.update({deck_id: count for deck_id, count in result.all()})
        return counts

    async def get_by_user(self, user_id: int) -> Sequence[DeckStock]:
        """Get every stock across all decks owned by a user."""
        result = await self.session.execute(
            select(DeckStock)
            .join(Deck, Deck.id == DeckStock.deck_id)
            .where(Deck.user_id == user_id)
            .order_by(DeckStock.deck_id, DeckStock.id)
        )
        return result.scalars().all()

    async def delete_by_deck(self, deck_id: int) -> int:
        """Delete every stock of a deck. Returns the number removed."""
        return await self.delete_where(deck_id=deck_id)
