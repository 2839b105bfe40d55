"""Subscription lifecycle and entitlement engine."""

from .catalog import PLAN_CATALOG, coerce_tier, get_plan_definition, tier_display_name
from .config import EntitlementConfig, StoreKind, load_entitlement_config
from .exceptions import EntitlementError, InvalidTier, StorageFailure, UnknownAction
from .models import (
    ACTION_QUOTA_KEYS,
    UNLIMITED,
    ActionUsage,
    BillingInterval,
    MeteredAction,
    PaymentInfo,
    PlanDefinition,
    QuotaKey,
    QuotaLimit,
    Subscription,
    SubscriptionStatus,
    SubscriptionTier,
    Unlimited,
    is_unlimited,
)
from .service import EntitlementEngine, coerce_action, reconcile
from .store import (
    InMemorySubscriptionStore,
    JsonFileSubscriptionStore,
    PostgresSubscriptionStore,
    SubscriptionStore,
)

__all__ = [
    "PLAN_CATALOG",
    "coerce_tier",
    "get_plan_definition",
    "tier_display_name",
    "EntitlementConfig",
    "StoreKind",
    "load_entitlement_config",
    "EntitlementError",
    "InvalidTier",
    "StorageFailure",
    "UnknownAction",
    "ACTION_QUOTA_KEYS",
    "UNLIMITED",
    "ActionUsage",
    "BillingInterval",
    "MeteredAction",
    "PaymentInfo",
    "PlanDefinition",
    "QuotaKey",
    "QuotaLimit",
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionTier",
    "Unlimited",
    "is_unlimited",
    "EntitlementEngine",
    "coerce_action",
    "reconcile",
    "InMemorySubscriptionStore",
    "JsonFileSubscriptionStore",
    "PostgresSubscriptionStore",
    "SubscriptionStore",
]
