"""Feature gating utilities deciding when to show a paywall."""
from .context import EntitlementContext
from .enforcement import require_feature, require_paid_subscription
from .exceptions import FeatureGateError
from .paywall import (
    PAYWALL_MESSAGES,
    PaywallMessage,
    PaywallReason,
    paywall_message,
    select_paywall_reason,
)
from .quota import QuotaEvaluation, assert_quota, evaluate_action_quota

__all__ = [
    "EntitlementContext",
    "FeatureGateError",
    "PAYWALL_MESSAGES",
    "PaywallMessage",
    "PaywallReason",
    "QuotaEvaluation",
    "assert_quota",
    "evaluate_action_quota",
    "paywall_message",
    "require_feature",
    "require_paid_subscription",
    "select_paywall_reason",
]
