"""Analytics over decks and their stocks.

Pure functions: callers load the stocks and quotes, this module only
computes. A deck without any recorded returns yields a "no data" summary,
never a zero average.
"""
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from stockdeck.models.deck_stock import DeckStock
from stockdeck.providers.base import Quote

HIGH_CONFIDENCE_CHANGE = 5.0

REASON_MOMENTUM = "Strong performance today"
REASON_VALUE = "Potential value opportunity"


@dataclass
class PerformanceSummary:
    """Aggregate returns of a deck, in percent.

    ``has_data`` is False when no stock in the deck has a recorded return;
    every metric is then None.
    """
    has_data: bool
    sample_size: int = 0
    average_return: float | None = None
    best_return: float | None = None
    worst_return: float | None = None
    total_return: float | None = None

    @classmethod
    def no_data(cls) -> "PerformanceSummary":
        return cls(has_data=False)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Recommendation:
    """A stock suggested to the user, scored by today's change."""
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    sector: str
    confidence: str
    reason: str
    score: float


@dataclass
class DashboardStats:
    total_decks: int
    total_stocks: int
    active_strategies: int
    unread_notifications: int


def next_snapshot(
    prior: dict[str, Any] | None,
    price: float,
    as_of: datetime,
) -> dict[str, Any]:
    """Build the performance snapshot that follows ``prior``.

    The first snapshot records ``price`` as the entry price and has no
    return. Later snapshots keep the entry price and compute the return
    against it.
    """
    entry_price = (prior or {}).get("entry_price")
    return_percent = None
    if entry_price:
        return_percent = round((price - entry_price) / entry_price * 100, 4)
    else:
        entry_price = price

    return {
        "current_price": price,
        "as_of": as_of.isoformat(),
        "entry_price": entry_price,
        "return_percent": return_percent,
    }


def _returns(stocks: Iterable[DeckStock]) -> list[float]:
    values = []
    for stock in stocks:
        snapshot = stock.performance_snapshot or {}
        value = snapshot.get("return_percent")
        if value is not None:
            values.append(float(value))
    return values


def summarize(stocks: Iterable[DeckStock]) -> PerformanceSummary:
    """Summarize the recorded returns of a deck's stocks."""
    returns = _returns(stocks)
    if not returns:
        return PerformanceSummary.no_data()

    total = sum(returns)
    return PerformanceSummary(
        has_data=True,
        sample_size=len(returns),
        average_return=total / len(returns),
        best_return=max(returns),
        worst_return=min(returns),
        total_return=total,
    )


def volatility(stocks: Iterable[DeckStock]) -> float | None:
    """Sample standard deviation of recorded returns; None below two samples."""
    returns = _returns(stocks)
    n = len(returns)
    if n < 2:
        return None
    mean = sum(returns) / n
    variance = sum((r - mean) ** 2 for r in returns) / (n - 1)
    return variance ** 0.5


def confidence_for(change_percent: float) -> str:
    if change_percent > HIGH_CONFIDENCE_CHANGE:
        return "High"
    if change_percent > 0:
        return "Medium"
    return "Low"


def build_recommendations(quotes: Iterable[Quote]) -> list[Recommendation]:
    """Turn quotes into scored recommendations. Fallback quotes are skipped."""
    recommendations = []
    for quote in quotes:
        if quote.is_fallback:
            continue
        recommendations.append(
            Recommendation(
                symbol=quote.symbol,
                name=quote.name,
                price=quote.price,
                change=quote.change,
                change_percent=quote.change_percent,
                sector=quote.sector,
                confidence=confidence_for(quote.change_percent),
                reason=REASON_MOMENTUM if quote.change_percent > 0 else REASON_VALUE,
                score=quote.change_percent,
            )
        )
    return recommendations


def rank(
    candidates: Iterable[Recommendation],
    existing_symbols: Iterable[str] = (),
) -> list[Recommendation]:
    """Order candidates by score, highest first, ties broken by symbol.

    Symbols in ``existing_symbols`` are excluded, as is any repeat of a
    symbol already ranked.
    """
    seen = {s.upper() for s in existing_symbols}
    unique = []
    for candidate in candidates:
        if candidate.symbol.upper() in seen:
            continue
        seen.add(candidate.symbol.upper())
        unique.append(candidate)
    return sorted(unique, key=lambda c: (-c.score, c.symbol))


def dashboard_stats(
    deck_count: int,
    stocks: Iterable[DeckStock],
    unread_notifications: int,
) -> DashboardStats:
    """Counts shown on the dashboard.

    ``active_strategies`` is the number of (stock, strategy) applications
    across all of the user's decks.
    """
    stocks = list(stocks)
    return DashboardStats(
        total_decks=deck_count,
        total_stocks=len(stocks),
        active_strategies=sum(len(s.applied_strategy_ids or []) for s in stocks),
        unread_notifications=unread_notifications,
    )
