"""Domain models for subscriptions, plans and usage metering."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubscriptionTier(str, Enum):
    """Canonical identifiers for subscription tiers."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    PRO = "pro"


class SubscriptionStatus(str, Enum):
    """Lifecycle state for subscriptions."""

    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    TRIAL = "trial"


class BillingInterval(str, Enum):
    """Supported billing frequencies."""

    MONTH = "month"
    FOREVER = "forever"


class QuotaKey(str, Enum):
    """Keys of the per-tier quota and usage tables."""

    LOCATIONS = "locations"
    AI_REQUESTS = "ai_requests"
    EXPORTS = "exports"
    TEAM_MEMBERS = "team_members"


class MeteredAction(str, Enum):
    """Closed set of actions whose consumption is tracked against quotas."""

    VIEW_LOCATION = "view_location"
    AI_REQUEST = "ai_request"
    EXPORT = "export"

    @property
    def quota_key(self) -> QuotaKey:
        return ACTION_QUOTA_KEYS[self]


ACTION_QUOTA_KEYS: Dict[MeteredAction, QuotaKey] = {
    MeteredAction.VIEW_LOCATION: QuotaKey.LOCATIONS,
    MeteredAction.AI_REQUEST: QuotaKey.AI_REQUESTS,
    MeteredAction.EXPORT: QuotaKey.EXPORTS,
}

METERED_QUOTA_KEYS: Tuple[QuotaKey, ...] = tuple(ACTION_QUOTA_KEYS.values())


class Unlimited(str, Enum):
    """Sentinel type for quotas without an upper bound.

    Deliberately not numeric: ``UNLIMITED < 5`` raises ``TypeError`` instead of
    silently comparing against a real limit.
    """

    UNLIMITED = "unlimited"


UNLIMITED = Unlimited.UNLIMITED

QuotaLimit = Union[int, Unlimited]


def is_unlimited(value: object) -> bool:
    return value is UNLIMITED


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC so they compare against the engine clock."""

    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def empty_usage() -> Dict[QuotaKey, int]:
    """Return a fresh usage table with every metered counter at zero."""

    return {key: 0 for key in METERED_QUOTA_KEYS}


@dataclass(frozen=True)
class PlanDefinition:
    """Static configuration backing a subscription tier."""

    tier: SubscriptionTier
    display_name: str
    price: Decimal
    billing_interval: BillingInterval
    quotas: Mapping[QuotaKey, QuotaLimit]
    features: Tuple[str, ...]
    locked_features: Tuple[str, ...] = ()
    popular: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "quotas", MappingProxyType(dict(self.quotas)))

    @property
    def never_expires(self) -> bool:
        return self.billing_interval == BillingInterval.FOREVER

    def quota_for(self, key: QuotaKey) -> QuotaLimit:
        return self.quotas.get(key, 0)


class PaymentInfo(BaseModel):
    """Payment metadata recorded on purchase. No charge is ever authorised."""

    last_payment: datetime
    amount: Decimal
    method: str = "card"
    next_billing: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("last_payment", "next_billing")
    @classmethod
    def _normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class Subscription(BaseModel):
    """The single subscription record held for a user."""

    user_id: str
    tier: SubscriptionTier
    status: SubscriptionStatus
    started_at: datetime
    expires_at: Optional[datetime] = None
    features: Tuple[str, ...] = Field(default_factory=tuple)
    quotas: Dict[QuotaKey, QuotaLimit] = Field(default_factory=dict)
    usage: Dict[QuotaKey, int] = Field(default_factory=empty_usage)
    payment_info: Optional[PaymentInfo] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("started_at", "expires_at")
    @classmethod
    def _normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @field_validator("usage")
    @classmethod
    def _validate_usage(cls, value: Dict[QuotaKey, int]) -> Dict[QuotaKey, int]:
        for key, count in value.items():
            if count < 0:
                raise ValueError(f"usage counter {key.value} must be >= 0")
        return value

    @property
    def is_active(self) -> bool:
        return self.status in {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL}

    @property
    def is_paid(self) -> bool:
        return self.tier != SubscriptionTier.FREE and self.is_active

    def usage_for(self, key: QuotaKey) -> int:
        return self.usage.get(key, 0)

    def quota_for(self, key: QuotaKey) -> QuotaLimit:
        return self.quotas.get(key, 0)


class ActionUsage(BaseModel):
    """Usage of one metered action against its quota."""

    action: MeteredAction
    used: int
    limit: QuotaLimit
    remaining: QuotaLimit

    model_config = ConfigDict(frozen=True)

    @property
    def exhausted(self) -> bool:
        return not is_unlimited(self.remaining) and self.remaining == 0
