"""Unit tests for the tier entitlement table."""
import pytest

from stockdeck.core.entitlements import (
    UNLIMITED,
    Bounded,
    Channel,
    DataTier,
    EntitlementProfile,
    EntitlementTable,
    FeatureFlag,
    build_default_profiles,
    default_entitlement_table,
)
from stockdeck.core.exceptions import UnknownTierError


def _profile(tier: int, decks, stocks=Bounded(10), strategies=Bounded(1), search=Bounded(5),
             features=frozenset(), channels=frozenset()) -> EntitlementProfile:
    return EntitlementProfile(
        tier=tier,
        name=f"Tier {tier}",
        max_decks=decks,
        max_stocks_per_deck=stocks,
        max_strategies_per_stock=strategies,
        search_result_limit=search,
        enabled_features=features,
        notification_channels=channels,
    )


class TestLimits:
    """Tests for Bounded and Unlimited limits."""

    def test_bounded_allows_strictly_below_value(self):
        limit = Bounded(3)
        assert limit.allows(0)
        assert limit.allows(2)
        assert not limit.allows(3)
        assert not limit.allows(4)

    def test_bounded_zero_allows_nothing(self):
        assert not Bounded(0).allows(0)

    def test_negative_bound_rejected(self):
        with pytest.raises(ValueError):
            Bounded(-1)

    def test_unlimited_is_not_a_large_number(self):
        assert UNLIMITED.is_unlimited
        assert UNLIMITED.allows(10**12)
        assert UNLIMITED.to_json() is None
        assert UNLIMITED != Bounded(10**12)

    def test_covers(self):
        assert Bounded(5).covers(Bounded(5))
        assert Bounded(5).covers(Bounded(3))
        assert not Bounded(3).covers(Bounded(5))
        assert not Bounded(10**9).covers(UNLIMITED)
        assert UNLIMITED.covers(Bounded(10**9))
        assert UNLIMITED.covers(UNLIMITED)


class TestDefaultSchedule:
    """Tests for the production tier schedule."""

    @pytest.mark.parametrize(
        "tier,decks,stocks,strategies,search",
        [
            (DataTier.FREEMIUM, 1, 3, 1, 5),
            (DataTier.MARKET_HOURS_PRO, 3, 15, 2, 10),
            (DataTier.SECTOR_SPECIALIST, 5, 25, 3, 10),
            (DataTier.WEEKEND_WARRIOR, 10, 50, 5, 25),
            (DataTier.DARK_POOL_INSIDER, 20, 100, 10, 25),
            (DataTier.ALGORITHMIC_TRADER, 50, 250, 25, 50),
        ],
    )
    def test_bounded_tiers(self, tier, decks, stocks, strategies, search):
        profile = default_entitlement_table().resolve(tier)
        assert profile.max_decks == Bounded(decks)
        assert profile.max_stocks_per_deck == Bounded(stocks)
        assert profile.max_strategies_per_stock == Bounded(strategies)
        assert profile.search_result_limit == Bounded(search)

    def test_top_tier_is_unlimited(self):
        profile = default_entitlement_table().resolve(DataTier.INSTITUTIONAL_ELITE)
        for name in EntitlementProfile.LIMIT_FIELDS:
            assert getattr(profile, name) is UNLIMITED

    def test_tier_names(self):
        table = default_entitlement_table()
        assert table.tier_name(1) == "Freemium"
        assert table.tier_name(4) == "Weekend Warrior"
        assert table.tier_name(7) == "Institutional Elite"

    def test_features_are_cumulative(self):
        table = default_entitlement_table()
        for lower, higher in zip(table.tiers, table.tiers[1:]):
            assert (
                table.resolve(lower).enabled_features
                <= table.resolve(higher).enabled_features
            )

    def test_feature_gates(self):
        table = default_entitlement_table()
        assert table.has_feature(1, FeatureFlag.BASIC_TRACKING)
        assert not table.has_feature(1, FeatureFlag.PRICE_TARGETS)
        assert table.has_feature(2, "price_targets")
        assert not table.has_feature(4, FeatureFlag.DARK_POOL_SIGNALS)
        assert table.has_feature(5, FeatureFlag.DARK_POOL_SIGNALS)
        assert table.has_feature(7, FeatureFlag.CUSTOM_DEVELOPMENT)

    def test_unknown_feature_is_not_enabled(self):
        assert not default_entitlement_table().has_feature(7, "teleportation")

    def test_notification_channels(self):
        table = default_entitlement_table()
        assert table.resolve(1).notification_channels == {Channel.IN_APP}
        assert table.resolve(3).notification_channels == {Channel.IN_APP, Channel.EMAIL}
        assert Channel.PUSH in table.resolve(4).notification_channels
        assert Channel.SMS in table.resolve(5).notification_channels
        assert Channel.WEBHOOK in table.resolve(6).notification_channels

    def test_default_table_is_cached(self):
        assert default_entitlement_table() is default_entitlement_table()


class TestResolve:
    """Tests for EntitlementTable.resolve and helpers."""

    @pytest.mark.parametrize("tier", [0, 8, -1, 99])
    def test_unknown_tier_has_no_fallback(self, tier):
        with pytest.raises(UnknownTierError):
            default_entitlement_table().resolve(tier)

    @pytest.mark.parametrize("tier", ["1", 1.0, None, True])
    def test_non_integer_tier_rejected(self, tier):
        with pytest.raises(UnknownTierError):
            default_entitlement_table().resolve(tier)

    def test_resolve_accepts_enum_and_int(self):
        table = default_entitlement_table()
        assert table.resolve(DataTier.WEEKEND_WARRIOR) is table.resolve(4)

    def test_can_create_deck(self):
        table = default_entitlement_table()
        assert table.can_create_deck(0, DataTier.FREEMIUM)
        assert not table.can_create_deck(1, DataTier.FREEMIUM)
        assert table.can_create_deck(10_000, DataTier.INSTITUTIONAL_ELITE)

    def test_can_add_stock(self):
        table = default_entitlement_table()
        assert table.can_add_stock(2, DataTier.FREEMIUM)
        assert not table.can_add_stock(3, DataTier.FREEMIUM)

    def test_clamp_results(self):
        table = default_entitlement_table()
        assert table.resolve(1).clamp_results(50) == 5
        assert table.resolve(1).clamp_results(2) == 2
        assert table.resolve(7).clamp_results(500) == 500

    def test_membership_and_length(self):
        table = default_entitlement_table()
        assert len(table) == 7
        assert 3 in table
        assert 8 not in table


class TestTableValidation:
    """Tests for construction-time validation of alternate schedules."""

    def test_custom_table(self):
        table = EntitlementTable([_profile(1, Bounded(2)), _profile(2, UNLIMITED)])
        assert table.tiers == [1, 2]
        assert table.resolve(2).max_decks is UNLIMITED

    def test_profiles_may_be_given_out_of_order(self):
        table = EntitlementTable([_profile(2, Bounded(5)), _profile(1, Bounded(2))])
        assert table.tiers == [1, 2]

    def test_decreasing_limit_rejected(self):
        with pytest.raises(ValueError, match="max_decks"):
            EntitlementTable([_profile(1, Bounded(5)), _profile(2, Bounded(3))])

    def test_unlimited_followed_by_bound_rejected(self):
        with pytest.raises(ValueError):
            EntitlementTable([_profile(1, UNLIMITED), _profile(2, Bounded(10**9))])

    def test_dropped_feature_rejected(self):
        with pytest.raises(ValueError, match="features"):
            EntitlementTable([
                _profile(1, Bounded(1), features=frozenset({FeatureFlag.BASIC_TRACKING})),
                _profile(2, Bounded(2), features=frozenset()),
            ])

    def test_dropped_channel_rejected(self):
        with pytest.raises(ValueError, match="channels"):
            EntitlementTable([
                _profile(1, Bounded(1), channels=frozenset({Channel.EMAIL})),
                _profile(2, Bounded(2), channels=frozenset()),
            ])

    def test_duplicate_tier_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            EntitlementTable([_profile(1, Bounded(1)), _profile(1, Bounded(2))])

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            EntitlementTable([])

    def test_default_profiles_build_a_valid_table(self):
        assert len(EntitlementTable(build_default_profiles())) == 7
