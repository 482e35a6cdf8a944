from fastapi import APIRouter, Depends, status

from eduportal.api.deps import get_services, require_admin
from eduportal.schemas.auth import Admin
from eduportal.schemas.billing import (
    ExpireTrialsResponse,
    GrantTrialRequest,
    Subscription,
    SubscriptionCreate,
)
from eduportal.services.container import Services

router = APIRouter(tags=["subscriptions"])


@router.post(
    "/subscriptions/create",
    response_model=Subscription,
    status_code=status.HTTP_201_CREATED,
)
def create_subscription(
    payload: SubscriptionCreate, services: Services = Depends(get_services)
):
    return services.subscriptions.create(payload)


@router.get("/admin/subscriptions", response_model=list[Subscription])
def list_subscriptions(
    admin: Admin = Depends(require_admin), services: Services = Depends(get_services)
):
    return services.subscriptions.list()


@router.post("/admin/subscriptions/expire-trials", response_model=ExpireTrialsResponse)
def expire_trials(
    admin: Admin = Depends(require_admin), services: Services = Depends(get_services)
):
    return ExpireTrialsResponse(expired=services.subscriptions.expire_trials(admin.id))


@router.patch("/admin/subscriptions/{subscription_id}/approve", response_model=Subscription)
def approve_subscription(
    subscription_id: str,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.subscriptions.approve(subscription_id, admin.id)


@router.patch(
    "/admin/subscriptions/{subscription_id}/grant-trial", response_model=Subscription
)
def grant_trial(
    subscription_id: str,
    payload: GrantTrialRequest,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.subscriptions.grant_trial(subscription_id, payload.months, admin.id)


@router.patch("/admin/subscriptions/{subscription_id}/revoke", response_model=Subscription)
def revoke_subscription(
    subscription_id: str,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.subscriptions.revoke(subscription_id, admin.id)
