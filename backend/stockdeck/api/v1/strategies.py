"""API endpoints for the strategy catalog."""

from fastapi import APIRouter

from stockdeck.core.deps import DatabaseSession
from stockdeck.repositories.strategy_repository import StrategyRepository
from stockdeck.schemas.strategy import StrategyResponse

router = APIRouter()


@router.get(
    "",
    response_model=list[StrategyResponse],
    summary="List Strategies",
    description="Active strategies that can be applied to stocks. Strategy ids "
    "applied to stocks are the catalog keys.",
    operation_id="list_strategies",
)
async def list_strategies(db: DatabaseSession) -> list[StrategyResponse]:
    strategies = await StrategyRepository(db).get_active()
    return [
        StrategyResponse(
            id=s.id,
            key=s.key,
            name=s.name,
            description=s.description,
            config=s.config or {},
            is_active=s.is_active,
        )
        for s in strategies
    ]
