from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi import HTTPException

from backend.app.entitlements import (
    UNLIMITED,
    EntitlementEngine,
    InMemorySubscriptionStore,
    MeteredAction,
    SubscriptionStatus,
    SubscriptionTier,
)
from backend.app.routes import subscriptions as subscriptions_routes
from backend.app.schemas.subscriptions import (
    PlanListResponse,
    PurchaseRequest,
    SubscriptionResponse,
    UsageSummaryResponse,
)


@pytest.fixture
def engine() -> EntitlementEngine:
    return EntitlementEngine(
        InMemorySubscriptionStore(),
        clock=lambda: datetime(2026, 7, 1, tzinfo=timezone.utc),
    )


def test_list_plans_returns_catalog(engine):
    response = subscriptions_routes.list_plans(engine=engine)

    assert isinstance(response, PlanListResponse)
    by_tier = {plan.tier: plan for plan in response.plans}
    assert set(by_tier) == set(SubscriptionTier)
    assert by_tier[SubscriptionTier.PREMIUM].popular is True
    assert by_tier[SubscriptionTier.PREMIUM].price == Decimal("19.99")
    assert by_tier[SubscriptionTier.PRO].locked == []


def test_get_my_subscription_creates_free_record(engine):
    response = subscriptions_routes.get_my_subscription(user_id="user-1", engine=engine)

    assert isinstance(response, SubscriptionResponse)
    assert response.subscription.tier == SubscriptionTier.FREE
    assert response.tier_name == "Free"
    assert response.is_paid is False


def test_purchase_uses_payment_method(engine):
    payload = PurchaseRequest(tier="premium", paymentMethod="card", metadata={"last4": "4242"})

    response = subscriptions_routes.purchase_subscription(payload, user_id="user-1", engine=engine)

    assert response.subscription.tier == SubscriptionTier.PREMIUM
    assert response.subscription.payment_info.method == "card"
    assert response.tier_name == "Premium"
    assert response.is_paid is True


def test_purchase_invalid_tier_returns_400(engine):
    payload = PurchaseRequest(tier="diamond")

    with pytest.raises(HTTPException) as exc:
        subscriptions_routes.purchase_subscription(payload, user_id="user-1", engine=engine)

    assert exc.value.status_code == 400


def test_cancel_without_record_returns_404(engine):
    with pytest.raises(HTTPException) as exc:
        subscriptions_routes.cancel_subscription(user_id="ghost", engine=engine)

    assert exc.value.status_code == 404


def test_cancel_existing_subscription(engine):
    engine.purchase_subscription("user-1", SubscriptionTier.BASIC)

    response = subscriptions_routes.cancel_subscription(user_id="user-1", engine=engine)

    assert response.subscription.status == SubscriptionStatus.CANCELLED
    assert response.is_paid is False


def test_track_usage_until_limit(engine):
    engine.purchase_subscription("user-1", SubscriptionTier.BASIC)

    for expected_remaining in range(4, -1, -1):
        response = subscriptions_routes.track_usage("export", user_id="user-1", engine=engine)
        assert response.remaining == expected_remaining

    with pytest.raises(HTTPException) as exc:
        subscriptions_routes.track_usage("export", user_id="user-1", engine=engine)

    assert exc.value.status_code == 402
    assert exc.value.detail["error"] == "limit_reached"
    assert engine.get_remaining_quota("user-1", MeteredAction.EXPORT) == 0


def test_track_usage_unknown_action_returns_400(engine):
    with pytest.raises(HTTPException) as exc:
        subscriptions_routes.track_usage("teleport", user_id="user-1", engine=engine)

    assert exc.value.status_code == 400


def test_track_unlimited_usage_reports_sentinel(engine):
    engine.purchase_subscription("user-1", SubscriptionTier.PRO)

    response = subscriptions_routes.track_usage("ai_request", user_id="user-1", engine=engine)

    assert response.remaining is UNLIMITED
    assert response.model_dump(mode="json")["remaining"] == "unlimited"


def test_usage_summary(engine):
    engine.track_usage("user-1", MeteredAction.VIEW_LOCATION)

    response = subscriptions_routes.get_usage(user_id="user-1", engine=engine)

    assert isinstance(response, UsageSummaryResponse)
    views = next(item for item in response.usage if item.action == MeteredAction.VIEW_LOCATION)
    assert views.used == 1
    assert views.remaining == 4


def test_feature_availability(engine):
    response = subscriptions_routes.get_feature_availability("Analytics", user_id="user-1", engine=engine)

    assert response.feature == "Analytics"
    assert response.available is False


def test_current_user_header_must_not_be_blank():
    with pytest.raises(HTTPException) as exc:
        subscriptions_routes._get_current_user_id("  ")

    assert exc.value.status_code == 401
    assert subscriptions_routes._get_current_user_id(" user-9 ") == "user-9"
