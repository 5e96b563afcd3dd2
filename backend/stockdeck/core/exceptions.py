"""Core exception classes for the Stock Deck application."""


class DeckServiceError(Exception):
    """Base exception for deck and stock operations."""

    pass


class NotFoundError(DeckServiceError):
    """Raised when a requested entity does not exist."""

    pass


class DeckNotFoundError(NotFoundError):
    """Raised when a deck does not exist or is not owned by the caller."""

    def __init__(self, deck_id: int):
        self.deck_id = deck_id
        super().__init__(f"Deck {deck_id} not found")


class StockNotFoundError(NotFoundError):
    """Raised when a symbol is not part of a deck."""

    def __init__(self, deck_id: int, symbol: str):
        self.deck_id = deck_id
        self.symbol = symbol
        super().__init__(f"Stock {symbol} not found in deck {deck_id}")


class UnknownTierError(NotFoundError):
    """Raised when a tier value is outside the entitlement table."""

    def __init__(self, tier: object):
        self.tier = tier
        super().__init__(f"Unknown subscription tier: {tier!r}")


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification does not exist or belongs to another user."""

    def __init__(self, notification_id: int):
        self.notification_id = notification_id
        super().__init__(f"Notification {notification_id} not found")


class LimitExceededError(DeckServiceError):
    """Raised when a mutation would exceed a tier limit.

    Attributes:
        limit_name: Entitlement field that was hit (e.g. ``max_stocks_per_deck``)
        limit: Numeric bound of that field for the tier
        current: Count at the time of the check
        tier: Tier the check was evaluated against
        tier_name: Display name of the tier
    """

    def __init__(self, limit_name: str, limit: int, current: int, tier: int, tier_name: str):
        self.limit_name = limit_name
        self.limit = limit
        self.current = current
        self.tier = tier
        self.tier_name = tier_name
        super().__init__(
            f"{limit_name} limit of {limit} reached for tier {tier_name} "
            f"(current: {current})"
        )


class DuplicateEntityError(DeckServiceError):
    """Raised when an entity is already present."""

    pass


class DuplicateSymbolError(DuplicateEntityError):
    """Raised when a symbol is added twice to the same deck."""

    def __init__(self, deck_id: int, symbol: str):
        self.deck_id = deck_id
        self.symbol = symbol
        super().__init__(f"Stock {symbol} already exists in deck {deck_id}")


class DuplicateStrategyError(DuplicateEntityError):
    """Raised when a strategy is applied twice to the same stock."""

    def __init__(self, symbol: str, strategy_id: str):
        self.symbol = symbol
        self.strategy_id = strategy_id
        super().__init__(f"Strategy {strategy_id} is already applied to {symbol}")


class DataValidationError(DeckServiceError):
    """Raised when input validation fails."""

    pass


class UpstreamUnavailableError(DeckServiceError):
    """Raised when an auxiliary upstream service cannot be reached."""

    pass


class APIError(UpstreamUnavailableError):
    """Raised when external market data API operations fail."""

    pass


class SymbolNotFoundError(UpstreamUnavailableError):
    """Raised when a stock symbol is unknown to the market data provider."""

    pass
