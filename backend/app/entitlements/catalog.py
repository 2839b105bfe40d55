"""Static catalog of subscription plans."""
from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Union

from .exceptions import InvalidTier
from .models import (
    UNLIMITED,
    BillingInterval,
    PlanDefinition,
    QuotaKey,
    SubscriptionTier,
)


FREE_PLAN = PlanDefinition(
    tier=SubscriptionTier.FREE,
    display_name="Free",
    price=Decimal("0"),
    billing_interval=BillingInterval.FOREVER,
    quotas={
        QuotaKey.LOCATIONS: 5,
        QuotaKey.AI_REQUESTS: 0,
        QuotaKey.EXPORTS: 0,
    },
    features=(
        "5 locations per month",
        "Basic map view",
        "Manual tracking",
        "Community support",
    ),
    locked_features=(
        "AI Guide",
        "Advanced filters",
        "Achievements",
        "Analytics",
        "Export data",
    ),
)

BASIC_PLAN = PlanDefinition(
    tier=SubscriptionTier.BASIC,
    display_name="Basic",
    price=Decimal("9.99"),
    billing_interval=BillingInterval.MONTH,
    quotas={
        QuotaKey.LOCATIONS: 50,
        QuotaKey.AI_REQUESTS: 10,
        QuotaKey.EXPORTS: 5,
    },
    features=(
        "50 locations",
        "Full map with clusters",
        "Search & filters",
        "Wishlist",
        "Basic achievements",
        "Email support",
    ),
    locked_features=(
        "AI Guide",
        "Advanced analytics",
        "API access",
    ),
)

PREMIUM_PLAN = PlanDefinition(
    tier=SubscriptionTier.PREMIUM,
    display_name="Premium",
    price=Decimal("19.99"),
    billing_interval=BillingInterval.MONTH,
    quotas={
        QuotaKey.LOCATIONS: UNLIMITED,
        QuotaKey.AI_REQUESTS: 100,
        QuotaKey.EXPORTS: UNLIMITED,
    },
    features=(
        "Unlimited locations",
        "AI-powered recommendations",
        "Full achievement system",
        "Advanced analytics",
        "Export data (CSV, JSON)",
        "Priority support",
        "No ads",
    ),
    locked_features=(
        "API access",
        "Team features",
    ),
    popular=True,
)

PRO_PLAN = PlanDefinition(
    tier=SubscriptionTier.PRO,
    display_name="Pro",
    price=Decimal("49.99"),
    billing_interval=BillingInterval.MONTH,
    quotas={
        QuotaKey.LOCATIONS: UNLIMITED,
        QuotaKey.AI_REQUESTS: UNLIMITED,
        QuotaKey.EXPORTS: UNLIMITED,
        QuotaKey.TEAM_MEMBERS: 5,
    },
    features=(
        "Everything in Premium",
        "API access with 10k requests/month",
        "Custom integrations",
        "White-label option",
        "Team features (up to 5 users)",
        "Dedicated account manager",
        "Custom reporting",
    ),
)

PLAN_CATALOG: Mapping[SubscriptionTier, PlanDefinition] = MappingProxyType(
    {
        SubscriptionTier.FREE: FREE_PLAN,
        SubscriptionTier.BASIC: BASIC_PLAN,
        SubscriptionTier.PREMIUM: PREMIUM_PLAN,
        SubscriptionTier.PRO: PRO_PLAN,
    }
)


def coerce_tier(tier: Union[SubscriptionTier, str]) -> SubscriptionTier:
    """Normalize a tier value, raising :class:`InvalidTier` when unknown."""

    if isinstance(tier, SubscriptionTier):
        return tier
    try:
        return SubscriptionTier(tier)
    except ValueError as exc:
        raise InvalidTier(tier) from exc


def get_plan_definition(tier: Union[SubscriptionTier, str]) -> PlanDefinition:
    """Return the plan backing a tier, raising if unsupported."""

    return PLAN_CATALOG[coerce_tier(tier)]


def tier_display_name(tier: Union[SubscriptionTier, str]) -> str:
    """Human-friendly tier name; unknown tiers read as the free plan."""

    try:
        return get_plan_definition(tier).display_name
    except InvalidTier:
        return FREE_PLAN.display_name
