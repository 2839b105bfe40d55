"""Subscription lifecycle, usage metering and entitlement queries."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping, Optional, Union

from dateutil.relativedelta import relativedelta

from .catalog import PLAN_CATALOG, coerce_tier, get_plan_definition
from .exceptions import UnknownAction
from .models import (
    ActionUsage,
    BillingInterval,
    MeteredAction,
    PaymentInfo,
    PlanDefinition,
    QuotaLimit,
    Subscription,
    SubscriptionStatus,
    SubscriptionTier,
    UNLIMITED,
    empty_usage,
    is_unlimited,
)
from .store import SubscriptionStore

logger = logging.getLogger(__name__)

_EXPIRING_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL})

ActionLike = Union[MeteredAction, str]


def reconcile(subscription: Subscription, now: datetime) -> Subscription:
    """Apply lazy expiration to a subscription as of ``now``.

    Active or trial records on a paid tier whose ``expires_at`` lies in the
    past become ``expired``. Every other record is returned unchanged.
    """

    if (
        subscription.status in _EXPIRING_STATUSES
        and subscription.tier != SubscriptionTier.FREE
        and subscription.expires_at is not None
        and now > subscription.expires_at
    ):
        return subscription.model_copy(update={"status": SubscriptionStatus.EXPIRED})
    return subscription


def add_billing_interval(start: datetime, interval: BillingInterval) -> Optional[datetime]:
    """Return the end of one billing interval, or ``None`` for plans that never expire."""

    if interval == BillingInterval.FOREVER:
        return None
    return start + relativedelta(months=1)


def coerce_action(action: ActionLike) -> MeteredAction:
    if isinstance(action, MeteredAction):
        return action
    try:
        return MeteredAction(action)
    except ValueError as exc:
        raise UnknownAction(action) from exc


class EntitlementEngine:
    """Owns subscription records and answers entitlement questions.

    The engine is the only writer of its store. Each operation is a short
    read-modify-write with no locking, so concurrent writers for the same user
    are last-writer-wins.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _now(self) -> datetime:
        return self._clock()

    # Lifecycle -----------------------------------------------------------

    def get_or_create(self, user_id: str) -> Subscription:
        """Return the user's subscription, creating a free one on first access."""

        subscription = self._store.get(user_id)
        if subscription is None:
            return self._create_free_subscription(user_id)

        reconciled = reconcile(subscription, self._now())
        if reconciled.status != subscription.status:
            logger.info(
                "Subscription expired user=%s tier=%s expires_at=%s",
                user_id,
                reconciled.tier.value,
                reconciled.expires_at,
            )
            self._store.put(user_id, reconciled)
        return reconciled

    def get_subscription(self, user_id: str) -> Subscription:
        return self.get_or_create(user_id)

    def _create_free_subscription(self, user_id: str) -> Subscription:
        plan = get_plan_definition(SubscriptionTier.FREE)
        subscription = Subscription(
            user_id=user_id,
            tier=plan.tier,
            status=SubscriptionStatus.ACTIVE,
            started_at=self._now(),
            expires_at=None,
            features=plan.features,
            quotas=dict(plan.quotas),
            usage=empty_usage(),
        )
        self._store.put(user_id, subscription)
        logger.info("Created free subscription user=%s", user_id)
        return subscription

    def purchase_subscription(
        self,
        user_id: str,
        tier: Union[SubscriptionTier, str],
        payment_details: Optional[Mapping[str, object]] = None,
    ) -> Subscription:
        """Replace the user's record with a fresh subscription to ``tier``.

        ``payment_details`` is recorded as supplied; nothing about it is
        verified here.
        """

        plan = get_plan_definition(coerce_tier(tier))
        details = payment_details or {}
        now = self._now()
        expires_at = add_billing_interval(now, plan.billing_interval)

        subscription = Subscription(
            user_id=user_id,
            tier=plan.tier,
            status=SubscriptionStatus.ACTIVE,
            started_at=now,
            expires_at=expires_at,
            features=plan.features,
            quotas=dict(plan.quotas),
            usage=empty_usage(),
            payment_info=PaymentInfo(
                last_payment=now,
                amount=plan.price,
                method=str(details.get("method") or "card"),
                next_billing=expires_at,
            ),
        )
        self._store.put(user_id, subscription)
        logger.info(
            "Subscription purchased user=%s tier=%s amount=%s expires_at=%s",
            user_id,
            plan.tier.value,
            plan.price,
            expires_at,
        )
        return subscription

    def cancel_subscription(self, user_id: str) -> Optional[Subscription]:
        """Mark an existing subscription cancelled; unknown users are a no-op."""

        existing = self._store.get(user_id)
        if existing is None:
            return None

        cancelled = existing.model_copy(update={"status": SubscriptionStatus.CANCELLED})
        self._store.put(user_id, cancelled)
        logger.info("Subscription cancelled user=%s tier=%s", user_id, cancelled.tier.value)
        return cancelled

    # Entitlement queries ---------------------------------------------------

    def has_active_subscription(self, user_id: str) -> bool:
        return self.get_or_create(user_id).is_active

    def has_paid_subscription(self, user_id: str) -> bool:
        return self.get_or_create(user_id).is_paid

    def is_feature_available(self, user_id: str, feature: str) -> bool:
        """Return ``False`` when any locked label of the user's tier contains ``feature``.

        The match is a case-insensitive substring test in one direction only:
        a query of ``"AI"`` is blocked by the locked label ``"AI Guide"``.
        """

        subscription = self.get_or_create(user_id)
        plan = get_plan_definition(subscription.tier)
        query = feature.lower()
        return not any(query in locked.lower() for locked in plan.locked_features)

    def can_perform_action(self, user_id: str, action: ActionLike) -> bool:
        metered = coerce_action(action)
        subscription = self.get_or_create(user_id)
        quota = subscription.quota_for(metered.quota_key)
        if is_unlimited(quota):
            return True
        return subscription.usage_for(metered.quota_key) < quota

    def track_usage(self, user_id: str, action: ActionLike) -> None:
        """Increment the counter for ``action`` by one without checking the quota."""

        metered = coerce_action(action)
        subscription = self.get_or_create(user_id)
        key = metered.quota_key
        usage = dict(subscription.usage)
        usage[key] = usage.get(key, 0) + 1
        self._store.put(user_id, subscription.model_copy(update={"usage": usage}))
        logger.debug("Tracked usage user=%s action=%s count=%s", user_id, metered.value, usage[key])

    def check_then_track(self, user_id: str, action: ActionLike) -> bool:
        """Track ``action`` if the quota allows it and report whether it did.

        This is two separate store round trips, not a transaction: concurrent
        callers for the same user and action can both pass the check.
        """

        metered = coerce_action(action)
        if not self.can_perform_action(user_id, metered):
            logger.warning("Quota exhausted user=%s action=%s", user_id, metered.value)
            return False
        self.track_usage(user_id, metered)
        return True

    def get_remaining_quota(self, user_id: str, action: ActionLike) -> QuotaLimit:
        metered = coerce_action(action)
        subscription = self.get_or_create(user_id)
        return self._remaining(subscription, metered)

    @staticmethod
    def _remaining(subscription: Subscription, action: MeteredAction) -> QuotaLimit:
        quota = subscription.quota_for(action.quota_key)
        if is_unlimited(quota):
            return UNLIMITED
        return max(0, quota - subscription.usage_for(action.quota_key))

    def get_usage_summary(self, user_id: str) -> Dict[MeteredAction, ActionUsage]:
        subscription = self.get_or_create(user_id)
        return {
            action: ActionUsage(
                action=action,
                used=subscription.usage_for(action.quota_key),
                limit=subscription.quota_for(action.quota_key),
                remaining=self._remaining(subscription, action),
            )
            for action in MeteredAction
        }

    def get_all_plans(self) -> Mapping[SubscriptionTier, PlanDefinition]:
        return PLAN_CATALOG
