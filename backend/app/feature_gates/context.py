"""Per-user facade over the entitlement engine for route handlers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..entitlements import EntitlementEngine, MeteredAction, QuotaLimit, Subscription
from .enforcement import require_feature, require_paid_subscription
from .paywall import PaywallReason, select_paywall_reason
from .quota import QuotaEvaluation, assert_quota, evaluate_action_quota

ActionLike = Union[MeteredAction, str]


@dataclass(frozen=True)
class EntitlementContext:
    """Facade exposing gating-centric helpers for a single user."""

    engine: EntitlementEngine
    user_id: str

    @property
    def subscription(self) -> Subscription:
        return self.engine.get_subscription(self.user_id)

    @property
    def has_paid_subscription(self) -> bool:
        return self.engine.has_paid_subscription(self.user_id)

    def has(self, feature: str) -> bool:
        """Return whether ``feature`` is available on the user's tier."""

        return self.engine.is_feature_available(self.user_id, feature)

    def remaining(self, action: ActionLike) -> QuotaLimit:
        return self.engine.get_remaining_quota(self.user_id, action)

    def paywall_reason(
        self,
        *,
        feature: Optional[str] = None,
        action: Optional[ActionLike] = None,
    ) -> Optional[PaywallReason]:
        return select_paywall_reason(self.engine, self.user_id, feature=feature, action=action)

    def require_paid(self) -> None:
        require_paid_subscription(self.engine, self.user_id)

    def require(self, feature: str) -> None:
        """Ensure ``feature`` is unlocked for the user."""

        require_feature(self.engine, self.user_id, feature)

    def evaluate_quota(self, action: ActionLike) -> QuotaEvaluation:
        return evaluate_action_quota(self.engine, self.user_id, action)

    def consume(self, action: ActionLike) -> QuotaEvaluation:
        """Raise when ``action`` is over quota, otherwise record one use of it."""

        evaluation = assert_quota(self.engine, self.user_id, action)
        self.engine.track_usage(self.user_id, evaluation.action)
        return evaluation
