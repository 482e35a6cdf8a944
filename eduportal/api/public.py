from fastapi import APIRouter, Depends

from eduportal.api.deps import get_services
from eduportal.schemas.billing import PaymentKeyResponse, ProductPrice
from eduportal.services.container import Services
from eduportal.services.pricing import PRODUCT_PRICING

router = APIRouter(tags=["public"])


@router.get("/pricing", response_model=dict[str, ProductPrice])
def get_pricing():
    return PRODUCT_PRICING


@router.get("/config/payment-key", response_model=PaymentKeyResponse)
@router.get("/config/razorpay-key", response_model=PaymentKeyResponse, include_in_schema=False)
def get_payment_key(services: Services = Depends(get_services)):
    return PaymentKeyResponse(key=services.gateway.public_key)
