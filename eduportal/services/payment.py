"""Payment orders and checkout verification."""

import logging

from eduportal.errors import NotFoundError, VerificationError
from eduportal.models.billing import PaymentStatus
from eduportal.schemas.billing import (
    OrderResponse,
    Payment,
    PaymentNew,
    PaymentPatch,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from eduportal.services.audit import AuditService
from eduportal.services.common import Clock, utc_now
from eduportal.services.payment_gateway import RazorpayGateway
from eduportal.services.store import Store
from eduportal.services.subscription import SubscriptionService

logger = logging.getLogger(__name__)

VERIFIED_MESSAGE = "Payment verified successfully"


def _rupees(paise: int) -> str:
    if paise % 100 == 0:
        return str(paise // 100)
    return f"{paise / 100:.2f}"


class PaymentService:
    def __init__(
        self,
        store: Store,
        audit: AuditService,
        gateway: RazorpayGateway,
        subscriptions: SubscriptionService,
        clock: Clock = utc_now,
        currency: str = "INR",
    ) -> None:
        self.store = store
        self.audit = audit
        self.gateway = gateway
        self.subscriptions = subscriptions
        self.clock = clock
        self.currency = currency

    def create_order(self, subscription_id: str) -> OrderResponse:
        subscription = self.store.get_subscription(subscription_id)
        if not subscription:
            raise NotFoundError("Subscription not found")

        order_id = self.gateway.new_order_id(self.clock())
        payment = self.store.create_payment(
            PaymentNew(
                school_id=subscription.school_id,
                subscription_id=subscription.id,
                razorpay_order_id=order_id,
                amount=subscription.total_amount * 100,
                currency=self.currency,
            )
        )
        logger.info(
            "Created payment order %s for %d paise",
            order_id,
            payment.amount,
            extra={"entity_type": "payment", "entity_id": payment.id},
        )
        self.audit.record(
            "payment_order_created",
            "payment",
            payment.id,
            details=f"Order {order_id} for subscription {subscription.id}",
        )
        return OrderResponse(
            order_id=order_id,
            amount=payment.amount,
            currency=payment.currency,
            key=self.gateway.public_key,
            payment_id=payment.id,
        )

    def verify(self, payload: VerifyPaymentRequest) -> VerifyPaymentResponse:
        with self.store.locked("payment", payload.payment_id):
            payment = self.store.get_payment(payload.payment_id)
            if not payment:
                raise NotFoundError("Payment not found")

            if payment.status == PaymentStatus.completed:
                logger.info(
                    "Payment already completed; skipping re-verification",
                    extra={"entity_type": "payment", "entity_id": payment.id},
                )
                return VerifyPaymentResponse(success=True, message=VERIFIED_MESSAGE)

            # Raises before touching the payment when the gateway is unusable.
            signature_ok = self.gateway.verify_signature(
                payload.gateway_order_id,
                payload.gateway_payment_id,
                payload.gateway_signature,
            )
            valid = signature_ok and payment.razorpay_order_id == payload.gateway_order_id

            if not valid:
                self._update(
                    payment,
                    PaymentPatch(
                        status=PaymentStatus.failed,
                        razorpay_payment_id=payload.gateway_payment_id,
                        razorpay_signature=payload.gateway_signature or None,
                    ),
                )
                failed = True
            else:
                payment = self._update(
                    payment,
                    PaymentPatch(
                        status=PaymentStatus.completed,
                        razorpay_payment_id=payload.gateway_payment_id,
                        razorpay_signature=payload.gateway_signature or None,
                        payment_method=payload.payment_method,
                        paid_at=self.clock(),
                    ),
                )
                failed = False

        if failed:
            logger.warning(
                "Payment signature verification failed",
                extra={"entity_type": "payment", "entity_id": payment.id},
            )
            self.audit.record(
                "payment_failed",
                "payment",
                payment.id,
                details=f"Signature check failed for order {payload.gateway_order_id}",
            )
            raise VerificationError("Payment verification failed")

        self.subscriptions.mark_paid(payment.subscription_id)
        logger.info(
            "Payment completed",
            extra={"entity_type": "payment", "entity_id": payment.id},
        )
        self.audit.record(
            "payment_completed",
            "payment",
            payment.id,
            details=f"Payment of ₹{_rupees(payment.amount)} completed",
        )
        return VerifyPaymentResponse(success=True, message=VERIFIED_MESSAGE)

    def list(self) -> list[Payment]:
        return sorted(self.store.get_all_payments(), key=lambda p: p.created_at)

    def _update(self, current: Payment, patch: PaymentPatch) -> Payment:
        updated = self.store.update_payment(
            current.id, patch, expected_version=current.version
        )
        if updated is None:
            raise NotFoundError("Payment not found")
        return updated
