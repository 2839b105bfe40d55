"""API schemas for subscription endpoints."""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements import (
    ActionUsage,
    BillingInterval,
    MeteredAction,
    PlanDefinition,
    QuotaKey,
    QuotaLimit,
    Subscription,
    SubscriptionTier,
)


class PlanResponse(BaseModel):
    tier: SubscriptionTier
    name: str
    price: Decimal
    interval: BillingInterval
    limits: Dict[QuotaKey, QuotaLimit]
    features: List[str]
    locked: List[str]
    popular: bool = False

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_plan(cls, plan: PlanDefinition) -> "PlanResponse":
        return cls(
            tier=plan.tier,
            name=plan.display_name,
            price=plan.price,
            interval=plan.billing_interval,
            limits=dict(plan.quotas),
            features=list(plan.features),
            locked=list(plan.locked_features),
            popular=plan.popular,
        )


class PlanListResponse(BaseModel):
    plans: List[PlanResponse]

    @classmethod
    def from_catalog(cls, catalog: Mapping[SubscriptionTier, PlanDefinition]) -> "PlanListResponse":
        return cls(plans=[PlanResponse.from_plan(plan) for plan in catalog.values()])


class SubscriptionResponse(BaseModel):
    subscription: Subscription
    tier_name: str = Field(alias="tierName")
    is_paid: bool = Field(alias="isPaid")

    model_config = ConfigDict(populate_by_name=True)


class PurchaseRequest(BaseModel):
    tier: str
    payment_method: Optional[str] = Field(alias="paymentMethod", default=None)
    metadata: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

    def payment_details(self) -> Dict[str, str]:
        details = dict(self.metadata)
        if self.payment_method:
            details["method"] = self.payment_method
        return details


class UsageSummaryResponse(BaseModel):
    usage: List[ActionUsage]

    @classmethod
    def from_summary(cls, summary: Mapping[MeteredAction, ActionUsage]) -> "UsageSummaryResponse":
        return cls(usage=list(summary.values()))


class TrackUsageResponse(BaseModel):
    action: MeteredAction
    remaining: QuotaLimit


class FeatureAvailabilityResponse(BaseModel):
    feature: str
    available: bool
