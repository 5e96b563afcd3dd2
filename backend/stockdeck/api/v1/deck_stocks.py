"""API endpoints for the stocks inside a deck."""

from fastapi import APIRouter, Depends, Query, status

from stockdeck.core.deps import (
    get_current_tier,
    get_current_user_id,
    get_deck_service,
    get_validated_symbol,
)
from stockdeck.models.deck_stock import DeckStock
from stockdeck.providers.base import Quote
from stockdeck.schemas.market import QuoteResponse
from stockdeck.schemas.stock import (
    ApplyStrategyRequest,
    RefreshResponse,
    StockAdd,
    StockResponse,
    StockUpdate,
)
from stockdeck.services.deck_service import DeckService, StockMeta

router = APIRouter()


def _to_response(stock: DeckStock, quote: Quote | None = None) -> StockResponse:
    """Convert model to response schema."""
    return StockResponse(
        id=stock.id,
        deck_id=stock.deck_id,
        symbol=stock.symbol,
        status=stock.status,
        notes=stock.notes,
        target_price=stock.target_price,
        stop_loss=stock.stop_loss,
        position_size=stock.position_size,
        tags=stock.tags or [],
        applied_strategy_ids=stock.applied_strategy_ids or [],
        performance_snapshot=stock.performance_snapshot,
        added_at=stock.added_at,
        last_updated_at=stock.last_updated_at,
        quote=QuoteResponse(**quote.to_dict()) if quote is not None else None,
    )


@router.get(
    "/{deck_id}/stocks",
    response_model=list[StockResponse],
    summary="List Deck Stocks",
    description="Get the stocks of a deck in the order they were added. "
    "With with_quotes=true each stock carries its current quote; quotes that "
    "could not be fetched are marked is_fallback.",
    operation_id="list_deck_stocks",
)
async def list_stocks(
    deck_id: int,
    with_quotes: bool = Query(False, description="Attach current quotes"),
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> list[StockResponse]:
    if with_quotes:
        quoted = await service.list_stocks_with_quotes(user_id, deck_id)
        return [_to_response(q.stock, q.quote) for q in quoted]
    stocks = await service.list_stocks(user_id, deck_id)
    return [_to_response(s) for s in stocks]


@router.post(
    "/{deck_id}/stocks",
    response_model=StockResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add Stock",
    description="Add a stock to a deck. Fails with 409 if the symbol is already "
    "present and 403 when the tier's per-deck limit is reached.",
    operation_id="add_deck_stock",
)
async def add_stock(
    deck_id: int,
    request: StockAdd,
    user_id: int = Depends(get_current_user_id),
    tier: int = Depends(get_current_tier),
    service: DeckService = Depends(get_deck_service),
) -> StockResponse:
    stock = await service.add_stock(
        user_id,
        deck_id,
        tier,
        request.symbol,
        StockMeta(
            notes=request.notes,
            target_price=request.target_price,
            stop_loss=request.stop_loss,
            position_size=request.position_size,
            tags=request.tags,
        ),
    )
    return _to_response(stock)


@router.get(
    "/{deck_id}/stocks/{symbol}",
    response_model=StockResponse,
    summary="Get Deck Stock",
    operation_id="get_deck_stock",
)
async def get_stock(
    deck_id: int,
    symbol: str = Depends(get_validated_symbol),
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> StockResponse:
    stock = await service.get_stock(user_id, deck_id, symbol)
    return _to_response(stock)


@router.put(
    "/{deck_id}/stocks/{symbol}",
    response_model=StockResponse,
    summary="Update Deck Stock",
    description="Update a stock's notes, price levels, tags or status.",
    operation_id="update_deck_stock",
)
async def update_stock(
    deck_id: int,
    request: StockUpdate,
    symbol: str = Depends(get_validated_symbol),
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> StockResponse:
    stock = await service.update_stock(
        user_id, deck_id, symbol, request.model_dump(exclude_unset=True)
    )
    return _to_response(stock)


@router.delete(
    "/{deck_id}/stocks/{symbol}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Deck Stock",
    operation_id="remove_deck_stock",
)
async def remove_stock(
    deck_id: int,
    symbol: str = Depends(get_validated_symbol),
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> None:
    await service.remove_stock(user_id, deck_id, symbol)


@router.post(
    "/{deck_id}/stocks/{symbol}/strategies",
    response_model=StockResponse,
    summary="Apply Strategy",
    description="Apply a strategy to a stock. Fails with 409 if already applied "
    "and 403 when the tier's per-stock strategy limit is reached.",
    operation_id="apply_strategy",
)
async def apply_strategy(
    deck_id: int,
    request: ApplyStrategyRequest,
    symbol: str = Depends(get_validated_symbol),
    user_id: int = Depends(get_current_user_id),
    tier: int = Depends(get_current_tier),
    service: DeckService = Depends(get_deck_service),
) -> StockResponse:
    stock = await service.apply_strategy(user_id, deck_id, symbol, tier, request.strategy_id)
    return _to_response(stock)


@router.post(
    "/{deck_id}/stocks/{symbol}/refresh",
    response_model=RefreshResponse,
    summary="Refresh Performance",
    description="Fetch a fresh quote and update the stock's performance snapshot. "
    "When market data is unavailable the previous snapshot is kept and stale is true.",
    operation_id="refresh_deck_stock",
)
async def refresh_performance(
    deck_id: int,
    symbol: str = Depends(get_validated_symbol),
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> RefreshResponse:
    result = await service.refresh_performance(user_id, deck_id, symbol)
    return RefreshResponse(
        stock=_to_response(result.stock),
        stale=result.stale,
        warning=result.warning,
    )
