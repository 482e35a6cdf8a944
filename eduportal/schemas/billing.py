from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from eduportal.models.billing import PaymentStatus, SubscriptionStatus
from eduportal.schemas.common import CamelModel, Patch, Record

# ── Pricing ──────────────────────────────────────────────


class ProductPrice(BaseModel):
    model_config = ConfigDict(frozen=True)
    name: str
    price: int
    unit: str


# ── Subscription ─────────────────────────────────────────


class SubscriptionCreate(CamelModel):
    school_id: str = Field(min_length=1)
    product_type: str = Field(min_length=1)
    student_count: int = Field(ge=1)
    contract_years: int = Field(default=1, ge=1)


class SubscriptionNew(CamelModel):
    """Store input: the request plus the price frozen at creation."""

    school_id: str
    product_type: str
    price_per_student: int
    student_count: int
    total_amount: int
    contract_years: int = 1


class Subscription(Record):
    id: str
    school_id: str
    product_type: str
    price_per_student: int
    student_count: int
    total_amount: int
    contract_years: int = 1
    status: SubscriptionStatus = SubscriptionStatus.pending
    is_trial_active: bool = False
    trial_end_date: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    approved_by_admin: bool = False
    approved_at: datetime | None = None
    created_at: datetime
    version: int = 1


class SubscriptionPatch(Patch):
    status: SubscriptionStatus | None = None
    is_trial_active: bool | None = None
    trial_end_date: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    approved_by_admin: bool | None = None
    approved_at: datetime | None = None


class GrantTrialRequest(CamelModel):
    # Strict so JSON true, "2" and 2.0 are refused; the range is checked by the service.
    months: int = Field(strict=True)


class ExpireTrialsResponse(CamelModel):
    expired: int


# ── Payment ──────────────────────────────────────────────


class PaymentNew(CamelModel):
    school_id: str
    subscription_id: str
    razorpay_order_id: str
    amount: int
    currency: str = "INR"
    payment_method: str | None = None


class Payment(Record):
    id: str
    school_id: str
    subscription_id: str
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None
    amount: int
    currency: str = "INR"
    status: PaymentStatus = PaymentStatus.pending
    payment_method: str | None = None
    created_at: datetime
    paid_at: datetime | None = None
    version: int = 1


class PaymentPatch(Patch):
    razorpay_payment_id: str | None = None
    razorpay_signature: str | None = None
    status: PaymentStatus | None = None
    payment_method: str | None = None
    paid_at: datetime | None = None


class CreateOrderRequest(CamelModel):
    subscription_id: str = Field(min_length=1)


class OrderResponse(CamelModel):
    order_id: str
    amount: int
    currency: str
    key: str
    payment_id: str


class VerifyPaymentRequest(CamelModel):
    payment_id: str = Field(min_length=1, max_length=36)
    gateway_payment_id: str = Field(
        min_length=1,
        max_length=80,
        validation_alias=AliasChoices(
            "gatewayPaymentId", "gateway_payment_id", "razorpayPaymentId"
        ),
    )
    gateway_order_id: str = Field(
        min_length=1,
        max_length=80,
        validation_alias=AliasChoices(
            "gatewayOrderId", "gateway_order_id", "razorpayOrderId"
        ),
    )
    gateway_signature: str = Field(
        default="",
        max_length=255,
        validation_alias=AliasChoices(
            "gatewaySignature", "gateway_signature", "razorpaySignature"
        ),
    )
    payment_method: str | None = Field(default=None, max_length=40)


class VerifyPaymentResponse(CamelModel):
    success: bool
    message: str


class PaymentKeyResponse(CamelModel):
    key: str
