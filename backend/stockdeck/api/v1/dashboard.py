"""Dashboard counters."""

from fastapi import APIRouter, Depends

from stockdeck.core.deps import get_current_user_id, get_deck_service
from stockdeck.schemas.tier import DashboardStatsResponse
from stockdeck.services.deck_service import DeckService

router = APIRouter()


@router.get(
    "/stats",
    response_model=DashboardStatsResponse,
    summary="Dashboard Stats",
    description="Deck, stock, applied strategy and unread notification counts.",
    operation_id="get_dashboard_stats",
)
async def get_dashboard_stats(
    user_id: int = Depends(get_current_user_id),
    service: DeckService = Depends(get_deck_service),
) -> DashboardStatsResponse:
    stats = await service.dashboard_stats(user_id)
    return DashboardStatsResponse(
        total_decks=stats.total_decks,
        total_stocks=stats.total_stocks,
        active_strategies=stats.active_strategies,
        unread_notifications=stats.unread_notifications,
    )
