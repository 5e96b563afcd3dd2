"""Repository for the strategy catalog."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockdeck.models.strategy import Strategy
from stockdeck.repositories.base import BaseRepository

# Catalog entries available out of the box
DEFAULT_STRATEGIES = [
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


class StrategyRepository(BaseRepository[Strategy]):
    """Repository for Strategy catalog entries."""

    def __init__(self, session: AsyncSession):
        super().__init__(Strategy, session)

    async def get_active(self) -> Sequence[Strategy]:
        result = await self.session.execute(
            select(Strategy).where(Strategy.is_active.is_(True)).order_by(Strategy.name)
        )
        return result.scalars().all()

    async def get_by_key(self, key: str) -> Strategy | None:
        result = await self.session.execute(select(Strategy).where(Strategy.key == key))
        return result.scalar_one_or_none()

    async def seed_defaults(self) -> int:
        """Insert missing DEFAULT_STRATEGIES. Returns how many were added."""
        added = 0
        for data in DEFAULT_STRATEGIES:
            if await self.get_by_key(data["key"]) is None:
                await self.create(**data)
                added += 1
        return added
