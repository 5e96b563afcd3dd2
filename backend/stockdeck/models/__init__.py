"""Database models for the Stock Deck application.

This module exports all SQLAlchemy models used throughout the application.
Import models from this module to ensure proper dependency resolution.
"""

from stockdeck.models.base import Base
from stockdeck.models.deck import Deck, DeckType
from stockdeck.models.deck_stock import DeckStock, StockStatus
from stockdeck.models.notification import Notification
from stockdeck.models.strategy import Strategy

__all__ = [
    "Base",
    "Deck",
    "DeckType",
    "DeckStock",
    "StockStatus",
    "Notification",
    "Strategy",
]
