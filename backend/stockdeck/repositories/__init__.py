"""Data access repositories with base repository pattern.

This module provides the base repository class and common exceptions
for all repository implementations in the Stock Deck application.
"""

from .base import BaseRepository
from .base import DatabaseError
from .base import DuplicateError
from .base import RepositoryError
from .deck_repository import DeckRepository
from .deck_stock_repository import DeckStockRepository
from .notification_repository import NotificationRepository
from .strategy_repository import StrategyRepository

__all__ = [
    "BaseRepository",
    "DeckRepository",
    "DeckStockRepository",
    "NotificationRepository",
    "StrategyRepository",
    "RepositoryError",
    "DuplicateError",
    "DatabaseError",
]
