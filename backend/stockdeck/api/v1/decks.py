"""API endpoints for deck management."""

from fastapi import APIRouter, Depends, status

from stockdeck.core.deps import get_current_tier, get_current_user_id, get_deck_service
from stockdeck.models.deck import Deck
from stockdeck.schemas.deck import (
    DeckCreate,
    DeckPerformanceResponse,
    DeckResponse,
    DeckUpdate,
)
from stockdeck.services import deck_analytics
from stockdeck.services.deck_service import DeckService, DeckSpec

router = APIRouter()


def _to_response(deck: Deck, stock_count: int | None = None) -> DeckResponse:
    """Convert model to response schema."""
    return DeckResponse(
        id=deck.id,
        user_id=deck.user_id,
        name=deck.name,
        type=deck.deck_type,
        description=deck.description,
        is_public=deck.is_public,
        settings=deck.settings or {},
        stock_count=stock_count,
        created_at=deck.created_at,
        updated_at=deck.updated_at,
    )


@router.get(
    "",
    response_model=list[DeckResponse],
    summary="List Decks",
    description="Get all decks of the current user, oldest first, with stock counts.",
    operation_id="list_decks",
)
async def list_decks(
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> list[DeckResponse]:
    summaries = await service.list_decks(user_id)
    return [_to_response(s.deck, s.stock_count) for s in summaries]


@router.post(
    "",
    response_model=DeckResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Deck",
    description="Create a new deck. Fails with 403 when the tier's deck limit is reached.",
    operation_id="create_deck",
)
async def create_deck(
    request: DeckCreate,
    user_id: int = Depends(get_current_user_id),
    tier: int = Depends(get_current_tier),
    service: DeckService = Depends(get_deck_service),
) -> DeckResponse:
    deck = await service.create_deck(
        user_id,
        tier,
        DeckSpec(
            name=request.name,
            deck_type=request.type,
            description=request.description,
            is_public=request.is_public,
            settings=request.settings,
        ),
    )
    return _to_response(deck, stock_count=0)


@router.get(
    "/{deck_id}",
    response_model=DeckResponse,
    summary="Get Deck",
    description="Get a specific deck by ID.",
    operation_id="get_deck",
)
async def get_deck(
    deck_id: int,
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> DeckResponse:
    deck = await service.get_deck(user_id, deck_id)
    return _to_response(deck)


@router.put(
    "/{deck_id}",
    response_model=DeckResponse,
    summary="Update Deck",
    description="Update deck attributes. Only provided fields change.",
    operation_id="update_deck",
)
async def update_deck(
    deck_id: int,
    request: DeckUpdate,
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> DeckResponse:
    patch = request.model_dump(exclude_unset=True)
    if "type" in patch:
        patch["deck_type"] = patch.pop("type")
    deck = await service.update_deck(user_id, deck_id, patch)
    return _to_response(deck)


@router.delete(
    "/{deck_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Deck",
    description="Delete a deck together with every stock in it.",
    operation_id="delete_deck",
)
async def delete_deck(
    deck_id: int,
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> None:
    await service.delete_deck(user_id, deck_id)


@router.get(
    "/{deck_id}/performance",
    response_model=DeckPerformanceResponse,
    summary="Deck Performance",
    description="Average, best, worst and total return of the deck's stocks plus "
    "volatility. Metrics are null when no stock has a recorded return.",
    operation_id="get_deck_performance",
)
async def get_deck_performance(
    deck_id: int,
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> DeckPerformanceResponse:
    stocks = await service.list_stocks(user_id, deck_id)
    summary = deck_analytics.summarize(stocks)
    return DeckPerformanceResponse(
        deck_id=deck_id,
        volatility=deck_analytics.volatility(stocks),
        **summary.to_dict(),
    )
