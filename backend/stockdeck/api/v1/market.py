"""Market data endpoints: quotes, search and recommendations."""

from fastapi import APIRouter, Depends, Query, Request

from stockdeck.core.deps import (
    get_current_tier,
    get_current_user_id,
    get_deck_service,
    get_quote_gateway,
    get_validated_symbol,
)
from stockdeck.core.rate_limit import MARKET_DATA_RATE_LIMIT, limiter
from stockdeck.schemas.market import QuoteResponse, RecommendationResponse, SearchResponse
from stockdeck.services.deck_service import DeckService
from stockdeck.services.quote_gateway import QuoteGateway

router = APIRouter()


@router.get(
    "/quote/{symbol}",
    response_model=QuoteResponse,
    summary="Get Quote",
    description="Current quote for a symbol. When market data is unavailable a "
    "placeholder quote with is_fallback=true is returned instead of an error.",
    operation_id="get_quote",
)
@limiter.limit(MARKET_DATA_RATE_LIMIT)
async def get_quote(
    request: Request,
    symbol: str = Depends(get_validated_symbol),
    gateway: QuoteGateway = Depends(get_quote_gateway),
) -> QuoteResponse:
    quote = await gateway.get_quote(symbol)
    return QuoteResponse(**quote.to_dict())


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search Stocks",
    description="Search stocks by symbol or company name. The number of results "
    "is capped by the current tier's search limit.",
    operation_id="search_stocks",
)
@limiter.limit(MARKET_DATA_RATE_LIMIT)
async def search_stocks(
    request: Request,
    q: str = Query("", max_length=100, description="Symbol or company name"),
    limit: int | None = Query(None, ge=1, le=100),
    tier: int = Depends(get_current_tier),
    service: DeckService = Depends(get_deck_service),
) -> SearchResponse:
    applied = service.search_limit(tier, limit)
    results = await service.search(tier, q, limit)
    return SearchResponse(
        query=q,
        limit=applied,
        results=[QuoteResponse(**quote.to_dict()) for quote in results],
    )


@router.get(
    "/recommendations",
    response_model=list[RecommendationResponse],
    summary="Recommendations",
    description="Today's top movers that are not already in any of the user's "
    "decks, highest change first.",
    operation_id="get_recommendations",
)
async def get_recommendations(
    limit: int = Query(6, ge=1, le=50),
    user_id: int = Depends(get_current_user_id),
    tier: int = Depends(get_current_tier),
    service: DeckService = Depends(get_deck_service),
) -> list[RecommendationResponse]:
    recommendations = await service.recommend(user_id, tier, limit)
    return [RecommendationResponse(**vars(r)) for r in recommendations]
