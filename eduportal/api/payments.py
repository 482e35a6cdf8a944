"""Checkout order and verification API routes."""

from fastapi import APIRouter, Depends

from eduportal.api.deps import get_services, require_admin
from eduportal.schemas.auth import Admin
from eduportal.schemas.billing import (
    CreateOrderRequest,
    OrderResponse,
    Payment,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from eduportal.services.container import Services

router = APIRouter(tags=["payments"])


@router.post("/payments/create-order", response_model=OrderResponse)
def create_order(payload: CreateOrderRequest, services: Services = Depends(get_services)):
    return services.payments.create_order(payload.subscription_id)


@router.post("/payments/verify", response_model=VerifyPaymentResponse)
def verify_payment(
    payload: VerifyPaymentRequest, services: Services = Depends(get_services)
):
    """Confirm a checkout. No auth: the gateway signature is the proof."""
    return services.payments.verify(payload)


@router.get("/admin/payments", response_model=list[Payment])
def list_payments(
    admin: Admin = Depends(require_admin), services: Services = Depends(get_services)
):
    return services.payments.list()
