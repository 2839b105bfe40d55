from __future__ import annotations

from decimal import Decimal

import pytest

from backend.app.entitlements import (
    PLAN_CATALOG,
    UNLIMITED,
    BillingInterval,
    EntitlementEngine,
    InMemorySubscriptionStore,
    InvalidTier,
    QuotaKey,
    SubscriptionTier,
    get_plan_definition,
    tier_display_name,
)


def test_catalog_covers_every_tier():
    assert set(PLAN_CATALOG) == set(SubscriptionTier)
    assert get_plan_definition("pro") is PLAN_CATALOG[SubscriptionTier.PRO]


@pytest.mark.parametrize(
    ("tier", "price", "interval"),
    [
        (SubscriptionTier.FREE, Decimal("0"), BillingInterval.FOREVER),
        (SubscriptionTier.BASIC, Decimal("9.99"), BillingInterval.MONTH),
        (SubscriptionTier.PREMIUM, Decimal("19.99"), BillingInterval.MONTH),
        (SubscriptionTier.PRO, Decimal("49.99"), BillingInterval.MONTH),
    ],
)
def test_plan_pricing(tier, price, interval):
    plan = get_plan_definition(tier)

    assert plan.price == price
    assert plan.billing_interval == interval


def test_quota_table():
    assert get_plan_definition(SubscriptionTier.BASIC).quota_for(QuotaKey.AI_REQUESTS) == 10
    assert get_plan_definition(SubscriptionTier.PREMIUM).quota_for(QuotaKey.EXPORTS) is UNLIMITED
    assert get_plan_definition(SubscriptionTier.PRO).quota_for(QuotaKey.TEAM_MEMBERS) == 5
    assert get_plan_definition(SubscriptionTier.FREE).quota_for(QuotaKey.TEAM_MEMBERS) == 0


def test_unlimited_sentinel_cannot_be_compared_with_numbers():
    with pytest.raises(TypeError):
        UNLIMITED < 5  # noqa: B015


def test_unknown_tier_raises():
    with pytest.raises(InvalidTier) as exc:
        get_plan_definition("enterprise")

    assert exc.value.tier == "enterprise"
    assert isinstance(exc.value, ValueError)


def test_tier_display_name():
    assert tier_display_name(SubscriptionTier.PREMIUM) == "Premium"
    assert tier_display_name("enterprise") == "Free"


def test_locked_features_by_tier():
    assert "AI Guide" in get_plan_definition(SubscriptionTier.FREE).locked_features
    assert get_plan_definition(SubscriptionTier.PRO).locked_features == ()
    assert get_plan_definition(SubscriptionTier.PREMIUM).popular is True


def test_plan_quotas_are_read_only():
    plans = EntitlementEngine(InMemorySubscriptionStore()).get_all_plans()

    with pytest.raises(TypeError):
        plans[SubscriptionTier.BASIC].quotas[QuotaKey.AI_REQUESTS] = 0
    assert get_plan_definition(SubscriptionTier.BASIC).quota_for(QuotaKey.AI_REQUESTS) == 10
