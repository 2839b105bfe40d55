"""Metered-action quota evaluation utilities for feature gating."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..entitlements import (
    EntitlementEngine,
    MeteredAction,
    QuotaLimit,
    coerce_action,
    is_unlimited,
)
from .exceptions import FeatureGateError
from .paywall import PaywallReason


@dataclass(frozen=True)
class QuotaEvaluation:
    """Represents the outcome of a quota check for one metered action."""

    action: MeteredAction
    used: int
    limit: QuotaLimit
    remaining: QuotaLimit
    allowed: bool

    @property
    def unlimited(self) -> bool:
        return is_unlimited(self.limit)

    def to_dict(self) -> dict[str, Union[str, int, bool]]:
        """Serialize the evaluation for logging or telemetry."""

        return {
            "action": self.action.value,
            "used": self.used,
            "limit": self.limit.value if is_unlimited(self.limit) else self.limit,
            "remaining": self.remaining.value if is_unlimited(self.remaining) else self.remaining,
            "allowed": self.allowed,
        }


def evaluate_action_quota(
    engine: EntitlementEngine,
    user_id: str,
    action: Union[MeteredAction, str],
) -> QuotaEvaluation:
    """Determine whether ``action`` is currently within the user's quota."""

    metered = coerce_action(action)
    usage = engine.get_usage_summary(user_id)[metered]
    return QuotaEvaluation(
        action=metered,
        used=usage.used,
        limit=usage.limit,
        remaining=usage.remaining,
        allowed=engine.can_perform_action(user_id, metered),
    )


def assert_quota(
    engine: EntitlementEngine,
    user_id: str,
    action: Union[MeteredAction, str],
) -> QuotaEvaluation:
    """Raise when the user has no quota left for ``action``."""

    evaluation = evaluate_action_quota(engine, user_id, action)

    if not evaluation.allowed:
        raise FeatureGateError.for_reason(PaywallReason.LIMIT_REACHED, **evaluation.to_dict())

    return evaluation
