"""Paywall variants and the gate-side logic that picks one."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from ..entitlements import (
    EntitlementEngine,
    MeteredAction,
    SubscriptionStatus,
    coerce_action,
    is_unlimited,
)


class PaywallReason(str, Enum):
    """Reason codes the UI maps onto paywall variants."""

    SUBSCRIPTION_REQUIRED = "subscription_required"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    UPGRADE_REQUIRED = "upgrade_required"
    LIMIT_REACHED = "limit_reached"


@dataclass(frozen=True)
class PaywallMessage:
    title: str
    message: str
    cta: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "message": self.message, "cta": self.cta}


PAYWALL_MESSAGES: Dict[PaywallReason, PaywallMessage] = {
    PaywallReason.SUBSCRIPTION_REQUIRED: PaywallMessage(
        title="Subscription Required",
        message="You need an active subscription to access this feature.",
        cta="View Plans",
    ),
    PaywallReason.SUBSCRIPTION_EXPIRED: PaywallMessage(
        title="Subscription Expired",
        message="Your subscription has expired. Renew to continue accessing premium features.",
        cta="Renew Subscription",
    ),
    PaywallReason.UPGRADE_REQUIRED: PaywallMessage(
        title="Upgrade Required",
        message="This feature is available in Premium and Pro plans.",
        cta="Upgrade Now",
    ),
    PaywallReason.LIMIT_REACHED: PaywallMessage(
        title="Limit Reached",
        message="You've reached your plan's limit. Upgrade for unlimited access.",
        cta="View Upgrade Options",
    ),
}


def paywall_message(reason: Union[PaywallReason, str, None]) -> PaywallMessage:
    """Return the copy for a reason, falling back to the generic paywall."""

    try:
        key = PaywallReason(reason) if reason is not None else PaywallReason.SUBSCRIPTION_REQUIRED
    except ValueError:
        key = PaywallReason.SUBSCRIPTION_REQUIRED
    return PAYWALL_MESSAGES[key]


def select_paywall_reason(
    engine: EntitlementEngine,
    user_id: str,
    *,
    feature: Optional[str] = None,
    action: Union[MeteredAction, str, None] = None,
    require_paid: bool = True,
) -> Optional[PaywallReason]:
    """Decide which paywall, if any, should replace protected content.

    Returns ``None`` when the user may proceed. Checks run in order: an expired
    record, a locked feature, an exhausted quota, and finally the absence of
    a paid subscription.
    """

    metered = coerce_action(action) if action is not None else None
    subscription = engine.get_subscription(user_id)

    if subscription.status == SubscriptionStatus.EXPIRED:
        return PaywallReason.SUBSCRIPTION_EXPIRED

    if feature is not None and not engine.is_feature_available(user_id, feature):
        return PaywallReason.UPGRADE_REQUIRED

    if metered is not None:
        remaining = engine.get_remaining_quota(user_id, metered)
        if not is_unlimited(remaining) and remaining <= 0:
            return PaywallReason.LIMIT_REACHED

    if require_paid and not engine.has_paid_subscription(user_id):
        return PaywallReason.SUBSCRIPTION_REQUIRED

    return None
