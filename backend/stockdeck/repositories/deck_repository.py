"""Repository for Deck database operations."""

from collections.abc import Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from stockdeck.models.deck import Deck
from stockdeck.repositories.base import BaseRepository


class DeckRepository(BaseRepository[Deck]):
    """Repository for Deck database operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Deck, session)

    async def get_by_user(self, user_id: int) -> Sequence[Deck]:
        """Get all decks for a user, oldest first."""
        result = await self.session.execute(
            select(Deck)
            .where(Deck.user_id == user_id)
            .order_by(Deck.created_at, Deck.id)
        )
        return result.scalars().all()

    async def count_by_user(self, user_id: int) -> int:
        """Count the decks a user currently owns."""
        result = await self.session.execute(
            select(func.count()).select_from(Deck).where(Deck.user_id == user_id)
        )
        return result.scalar() or 0

    async def get_by_id_and_user(
        self,
        deck_id: int,
        user_id: int,
        for_update: bool = False,
    ) -> Deck | None:
        """Get a specific deck by ID, ensuring user ownership.

        With ``for_update`` the row is locked until the transaction ends
        (no-op on SQLite).
        """
        query = select(Deck).where(Deck.id == deck_id).where(Deck.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
