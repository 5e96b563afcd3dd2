"""Subscription tiers and the entitlement table.

Every tier maps to an immutable EntitlementProfile holding its numeric limits
and feature set. "Unlimited" is the UNLIMITED sentinel, never a magic number,
so a comparison against a limit can't silently flip sign.

The table is built once and injected into DeckService. Tests pass their own
EntitlementTable to exercise alternate schedules.
"""
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from functools import lru_cache
from types import MappingProxyType
from typing import Union

from stockdeck.core.exceptions import UnknownTierError


class DataTier(IntEnum):
    """Subscription levels, ordered from cheapest to most expensive."""

    FREEMIUM = 1
    MARKET_HOURS_PRO = 2
    SECTOR_SPECIALIST = 3
    WEEKEND_WARRIOR = 4
    DARK_POOL_INSIDER = 5
    ALGORITHMIC_TRADER = 6
    INSTITUTIONAL_ELITE = 7


TIER_NAMES: Mapping[int, str] = MappingProxyType({
    DataTier.FREEMIUM: "Freemium",
    DataTier.MARKET_HOURS_PRO: "Market Hours Pro",
    DataTier.SECTOR_SPECIALIST: "Sector Specialist",
    DataTier.WEEKEND_WARRIOR: "Weekend Warrior",
    DataTier.DARK_POOL_INSIDER: "Dark Pool Insider",
    DataTier.ALGORITHMIC_TRADER: "Algorithmic Trader",
    DataTier.INSTITUTIONAL_ELITE: "Institutional Elite",
})


class FeatureFlag(str, Enum):
    """Features that can be switched on per tier."""

    BASIC_TRACKING = "basic_tracking"
    SIMPLE_NOTES = "simple_notes"
    PRICE_TARGETS = "price_targets"
    BASIC_ANALYTICS = "basic_analytics"
    SECTOR_ANALYSIS = "sector_analysis"
    ADVANCED_ANALYTICS = "advanced_analytics"
    PERFORMANCE_TRACKING = "performance_tracking"
    CUSTOM_TAGS = "custom_tags"
    INSTITUTIONAL_DATA = "institutional_data"
    DARK_POOL_SIGNALS = "dark_pool_signals"
    API_ACCESS = "api_access"
    CUSTOM_INTEGRATIONS = "custom_integrations"
    ADVANCED_AUTOMATION = "advanced_automation"
    WHITE_LABEL = "white_label"
    PRIORITY_SUPPORT = "priority_support"
    CUSTOM_DEVELOPMENT = "custom_development"


class Channel(str, Enum):
    """Notification delivery channels."""

    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"
    WEBHOOK = "webhook"


@dataclass(frozen=True)
class Bounded:
    """A finite limit: counts strictly below ``value`` may grow by one."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Bounded limit must be non-negative, got {self.value}")

    @property
    def is_unlimited(self) -> bool:
        return False

    def allows(self, current: int) -> bool:
        """Whether one more item may be added when ``current`` items exist."""
        return current < self.value

    def covers(self, other: "Limit") -> bool:
        """Whether this limit is at least as generous as ``other``."""
        return isinstance(other, Bounded) and self.value >= other.value

    def to_json(self) -> int | None:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Unlimited:
    """No limit. Use the module-level UNLIMITED instance."""

    @property
    def is_unlimited(self) -> bool:
        return True

    def allows(self, current: int) -> bool:
        return True

    def covers(self, other: "Limit") -> bool:
        return True

    def to_json(self) -> int | None:
        return None

    def __str__(self) -> str:
        return "unlimited"


UNLIMITED = Unlimited()

Limit = Union[Bounded, Unlimited]


@dataclass(frozen=True)
class EntitlementProfile:
    """Resolved limits and features for one tier."""

    tier: int
    name: str
    max_decks: Limit
    max_stocks_per_deck: Limit
    max_strategies_per_stock: Limit
    search_result_limit: Limit
    enabled_features: frozenset[FeatureFlag] = field(default_factory=frozenset)
    notification_channels: frozenset[Channel] = field(default_factory=frozenset)

    # Numeric fields that must never shrink as the tier increases
    LIMIT_FIELDS = (
        "max_decks",
        "max_stocks_per_deck",
        "max_strategies_per_stock",
        "search_result_limit",
    )

    def has_feature(self, feature: FeatureFlag | str) -> bool:
        try:
            return FeatureFlag(feature) in self.enabled_features
        except ValueError:
            return False

    def clamp_results(self, requested: int) -> int:
        """Cap a requested result count at this tier's search limit."""
        if isinstance(self.search_result_limit, Bounded):
            return min(requested, self.search_result_limit.value)
        return requested


TierLike = Union[int, DataTier]


class EntitlementTable:
    """Immutable mapping from tier to EntitlementProfile.

    Construction validates that every numeric limit and both sets are
    non-decreasing as the tier increases; a schedule that takes something
    away from a higher tier is rejected with ValueError.
    """

    def __init__(self, profiles: Iterable[EntitlementProfile]):
        by_tier: dict[int, EntitlementProfile] = {}
        for profile in profiles:
            if profile.tier in by_tier:
                raise ValueError(f"Duplicate profile for tier {profile.tier}")
            by_tier[profile.tier] = profile
        if not by_tier:
            raise ValueError("Entitlement table needs at least one tier")

        self._validate_monotonic([by_tier[t] for t in sorted(by_tier)])
        self._profiles: Mapping[int, EntitlementProfile] = MappingProxyType(by_tier)

    @staticmethod
    def _validate_monotonic(ordered: list[EntitlementProfile]) -> None:
        for lower, higher in zip(ordered, ordered[1:]):
            for name in EntitlementProfile.LIMIT_FIELDS:
                if not getattr(higher, name).covers(getattr(lower, name)):
                    raise ValueError(
                        f"Tier {higher.tier} grants less {name} than tier {lower.tier}"
                    )
            if not lower.enabled_features <= higher.enabled_features:
                raise ValueError(
                    f"Tier {higher.tier} drops features enabled on tier {lower.tier}"
                )
            if not lower.notification_channels <= higher.notification_channels:
                raise ValueError(
                    f"Tier {higher.tier} drops channels enabled on tier {lower.tier}"
                )

    @property
    def tiers(self) -> list[int]:
        return sorted(self._profiles)

    def resolve(self, tier: TierLike) -> EntitlementProfile:
        """Return the profile for ``tier``.

        Raises:
            UnknownTierError: If the tier is not in the table. There is no
                fallback profile.
        """
        if isinstance(tier, bool) or not isinstance(tier, int):
            raise UnknownTierError(tier)
        profile = self._profiles.get(int(tier))
        if profile is None:
            raise UnknownTierError(tier)
        return profile

    def has_feature(self, tier: TierLike, feature: FeatureFlag | str) -> bool:
        return self.resolve(tier).has_feature(feature)

    def tier_name(self, tier: TierLike) -> str:
        return self.resolve(tier).name

    def can_create_deck(self, current_deck_count: int, tier: TierLike) -> bool:
        return self.resolve(tier).max_decks.allows(current_deck_count)

    def can_add_stock(self, current_stock_count: int, tier: TierLike) -> bool:
        return self.resolve(tier).max_stocks_per_deck.allows(current_stock_count)

    def __contains__(self, tier: object) -> bool:
        return tier in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)


def _cumulative(*groups: Iterable) -> list[frozenset]:
    """Turn per-tier additions into cumulative sets."""
    result = []
    acc: set = set()
    for group in groups:
        acc |= set(group)
        result.append(frozenset(acc))
    return result


_FEATURES = _cumulative(
    [FeatureFlag.BASIC_TRACKING, FeatureFlag.SIMPLE_NOTES],
    [FeatureFlag.PRICE_TARGETS, FeatureFlag.BASIC_ANALYTICS],
    [FeatureFlag.SECTOR_ANALYSIS],
    [
        FeatureFlag.ADVANCED_ANALYTICS,
        FeatureFlag.PERFORMANCE_TRACKING,
        FeatureFlag.CUSTOM_TAGS,
    ],
    [FeatureFlag.INSTITUTIONAL_DATA, FeatureFlag.DARK_POOL_SIGNALS],
    [
        FeatureFlag.API_ACCESS,
        FeatureFlag.CUSTOM_INTEGRATIONS,
        FeatureFlag.ADVANCED_AUTOMATION,
    ],
    [
        FeatureFlag.WHITE_LABEL,
        FeatureFlag.PRIORITY_SUPPORT,
        FeatureFlag.CUSTOM_DEVELOPMENT,
    ],
)

_CHANNELS = _cumulative(
    [Channel.IN_APP],
    [Channel.EMAIL],
    [],
    [Channel.PUSH],
    [Channel.SMS],
    [Channel.WEBHOOK],
    [],
)

# (max_decks, max_stocks_per_deck, max_strategies_per_stock, search_result_limit)
_LIMITS: dict[DataTier, tuple[Limit, Limit, Limit, Limit]] = {
    DataTier.FREEMIUM: (Bounded(1), Bounded(3), Bounded(1), Bounded(5)),
    DataTier.MARKET_HOURS_PRO: (Bounded(3), Bounded(15), Bounded(2), Bounded(10)),
    DataTier.SECTOR_SPECIALIST: (Bounded(5), Bounded(25), Bounded(3), Bounded(10)),
    DataTier.WEEKEND_WARRIOR: (Bounded(10), Bounded(50), Bounded(5), Bounded(25)),
    DataTier.DARK_POOL_INSIDER: (Bounded(20), Bounded(100), Bounded(10), Bounded(25)),
    DataTier.ALGORITHMIC_TRADER: (Bounded(50), Bounded(250), Bounded(25), Bounded(50)),
    DataTier.INSTITUTIONAL_ELITE: (UNLIMITED, UNLIMITED, UNLIMITED, UNLIMITED),
}


def build_default_profiles() -> list[EntitlementProfile]:
    """Build the production tier schedule."""
    profiles = []
    for index, tier in enumerate(DataTier):
        decks, stocks, strategies, search = _LIMITS[tier]
        profiles.append(
            EntitlementProfile(
                tier=int(tier),
                name=TIER_NAMES[tier],
                max_decks=decks,
                max_stocks_per_deck=stocks,
                max_strategies_per_stock=strategies,
                search_result_limit=search,
                enabled_features=_FEATURES[index],
                notification_channels=_CHANNELS[index],
            )
        )
    return profiles


@lru_cache
def default_entitlement_table() -> EntitlementTable:
    """Get the process-wide production entitlement table."""
    return EntitlementTable(build_default_profiles())
