"""API routes exposing subscription and entitlement functionality."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, status

from ..entitlements import (
    EntitlementEngine,
    InvalidTier,
    MeteredAction,
    UnknownAction,
    coerce_action,
    tier_display_name,
)
from ..feature_gates import FeatureGateError, assert_quota
from ..schemas.subscriptions import (
    FeatureAvailabilityResponse,
    PlanListResponse,
    PurchaseRequest,
    SubscriptionResponse,
    TrackUsageResponse,
    UsageSummaryResponse,
)
from ..services.subscriptions import get_entitlement_engine


def _get_current_user_id(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identifier")
    return user_id


router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


@router.get("/plans", response_model=PlanListResponse)
def list_plans(
    *,
    engine: EntitlementEngine = Depends(get_entitlement_engine),
) -> PlanListResponse:
    return PlanListResponse.from_catalog(engine.get_all_plans())


@router.get("/me", response_model=SubscriptionResponse)
def get_my_subscription(
    *,
    user_id: str = Depends(_get_current_user_id),
    engine: EntitlementEngine = Depends(get_entitlement_engine),
) -> SubscriptionResponse:
    subscription = engine.get_subscription(user_id)
    return SubscriptionResponse(
        subscription=subscription,
        tier_name=tier_display_name(subscription.tier),
        is_paid=subscription.is_paid,
    )


@router.post("/purchase", response_model=SubscriptionResponse)
def purchase_subscription(
    payload: PurchaseRequest,
    *,
    user_id: str = Depends(_get_current_user_id),
    engine: EntitlementEngine = Depends(get_entitlement_engine),
) -> SubscriptionResponse:
    try:
        subscription = engine.purchase_subscription(user_id, payload.tier, payload.payment_details())
    except InvalidTier as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SubscriptionResponse(
        subscription=subscription,
        tier_name=tier_display_name(subscription.tier),
        is_paid=subscription.is_paid,
    )


@router.post("/cancel", response_model=SubscriptionResponse)
def cancel_subscription(
    *,
    user_id: str = Depends(_get_current_user_id),
    engine: EntitlementEngine = Depends(get_entitlement_engine),
) -> SubscriptionResponse:
    subscription = engine.cancel_subscription(user_id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No subscription to cancel")
    return SubscriptionResponse(
        subscription=subscription,
        tier_name=tier_display_name(subscription.tier),
        is_paid=subscription.is_paid,
    )


@router.get("/usage", response_model=UsageSummaryResponse)
def get_usage(
    *,
    user_id: str = Depends(_get_current_user_id),
    engine: EntitlementEngine = Depends(get_entitlement_engine),
) -> UsageSummaryResponse:
    return UsageSummaryResponse.from_summary(engine.get_usage_summary(user_id))


@router.post("/usage/{action}", response_model=TrackUsageResponse)
def track_usage(
    action: str,
    *,
    user_id: str = Depends(_get_current_user_id),
    engine: EntitlementEngine = Depends(get_entitlement_engine),
) -> TrackUsageResponse:
    try:
        metered: MeteredAction = coerce_action(action)
    except UnknownAction as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        assert_quota(engine, user_id, metered)
    except FeatureGateError as exc:
        raise exc.to_http_exception() from exc

    engine.track_usage(user_id, metered)
    return TrackUsageResponse(action=metered, remaining=engine.get_remaining_quota(user_id, metered))


@router.get("/features/{feature}", response_model=FeatureAvailabilityResponse)
def get_feature_availability(
    feature: str,
    *,
    user_id: str = Depends(_get_current_user_id),
    engine: EntitlementEngine = Depends(get_entitlement_engine),
) -> FeatureAvailabilityResponse:
    return FeatureAvailabilityResponse(
        feature=feature,
        available=engine.is_feature_available(user_id, feature),
    )
