"""API endpoints for subscription tiers."""

from fastapi import APIRouter, Depends

from stockdeck.core.deps import (
    get_current_tier,
    get_current_user_id,
    get_deck_service,
    get_entitlement_table,
)
from stockdeck.core.entitlements import EntitlementProfile, EntitlementTable
from stockdeck.schemas.tier import TierLimitsResponse, TierProfileResponse, TierUsageResponse
from stockdeck.services.deck_service import DeckService

router = APIRouter()


def _to_response(profile: EntitlementProfile) -> TierProfileResponse:
    return TierProfileResponse(
        tier=profile.tier,
        name=profile.name,
        limits=TierLimitsResponse(
            max_decks=profile.max_decks.to_json(),
            max_stocks_per_deck=profile.max_stocks_per_deck.to_json(),
            max_strategies_per_stock=profile.max_strategies_per_stock.to_json(),
            search_result_limit=profile.search_result_limit.to_json(),
        ),
        features=sorted(f.value for f in profile.enabled_features),
        notification_channels=sorted(c.value for c in profile.notification_channels),
    )


@router.get(
    "",
    response_model=list[TierProfileResponse],
    summary="List Tiers",
    description="Every tier with its limits, features and notification channels. "
    "Null limits are unlimited.",
    operation_id="list_tiers",
)
async def list_tiers(
    entitlements: EntitlementTable = Depends(get_entitlement_table),
) -> list[TierProfileResponse]:
    return [_to_response(entitlements.resolve(tier)) for tier in entitlements.tiers]


@router.get(
    "/me",
    response_model=TierUsageResponse,
    summary="Current Tier",
    description="The current user's tier profile and deck usage.",
    operation_id="get_current_tier_usage",
)
async def get_my_tier(
    user_id: int = Depends(get_current_user_id),
    tier: int = Depends(get_current_tier),
    entitlements: EntitlementTable = Depends(get_entitlement_table),
    service: DeckService = Depends(get_deck_service),
) -> TierUsageResponse:
    profile = entitlements.resolve(tier)
    deck_count = len(await service.list_decks(user_id))
    return TierUsageResponse(
        profile=_to_response(profile),
        deck_count=deck_count,
        can_create_deck=entitlements.can_create_deck(deck_count, tier),
    )


@router.get(
    "/{tier}",
    response_model=TierProfileResponse,
    summary="Get Tier",
    operation_id="get_tier",
)
async def get_tier(
    tier: int,
    entitlements: EntitlementTable = Depends(get_entitlement_table),
) -> TierProfileResponse:
    return _to_response(entitlements.resolve(tier))
