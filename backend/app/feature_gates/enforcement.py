"""Helpers for enforcing entitlement checks on API and service layers."""
from __future__ import annotations

from ..entitlements import EntitlementEngine
from .exceptions import FeatureGateError
from .paywall import select_paywall_reason


def require_paid_subscription(
    engine: EntitlementEngine,
    user_id: str,
    *,
    message: str | None = None,
) -> None:
    """Ensure the user holds an active paid subscription before proceeding.

    Parameters
    ----------
    engine:
        Entitlement engine answering the subscription questions.
    user_id:
        Identifier of the user requesting protected content.
    message:
        Optional human-friendly message explaining the failure. If omitted, the
        copy of the selected paywall variant is used.
    """

    reason = select_paywall_reason(engine, user_id)
    if reason is not None:
        raise FeatureGateError.for_reason(reason, message=message)


def require_feature(
    engine: EntitlementEngine,
    user_id: str,
    feature: str,
    *,
    message: str | None = None,
) -> None:
    """Ensure ``feature`` is not locked for the user's tier."""

    reason = select_paywall_reason(engine, user_id, feature=feature, require_paid=False)
    if reason is not None:
        raise FeatureGateError.for_reason(reason, message=message, feature=feature)
