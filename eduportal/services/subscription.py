"""Subscription lifecycle: creation, admin approval, trials and revocation."""

import logging

from eduportal.errors import NotFoundError, ValidationError
from eduportal.models.billing import SubscriptionStatus
from eduportal.schemas.billing import (
    Subscription,
    SubscriptionCreate,
    SubscriptionNew,
    SubscriptionPatch,
)
from eduportal.services import pricing
from eduportal.services.audit import AuditService
from eduportal.services.common import Clock, add_months, add_years, utc_now
from eduportal.services.store import Store

logger = logging.getLogger(__name__)

MIN_TRIAL_MONTHS = 1
MAX_TRIAL_MONTHS = 3

# Payment verification never moves a subscription out of these.
_PAYMENT_LOCKED_STATUSES = {SubscriptionStatus.active, SubscriptionStatus.revoked}


def _invalid_transition(subscription: Subscription, target: str) -> ValidationError:
    return ValidationError(
        f"Subscription is {subscription.status.value} and cannot be {target}",
        details={
            "code": "invalid_transition",
            "from": subscription.status.value,
            "to": target,
        },
    )


class SubscriptionService:
    def __init__(self, store: Store, audit: AuditService, clock: Clock = utc_now) -> None:
        self.store = store
        self.audit = audit
        self.clock = clock

    def create(self, payload: SubscriptionCreate) -> Subscription:
        school = self.store.get_school(payload.school_id)
        if not school:
            raise NotFoundError("School not found")

        product = pricing.get_price(payload.product_type)
        if product is None:
            raise ValidationError(
                "Invalid product type", details={"product_type": payload.product_type}
            )
        if not pricing.is_purchasable(payload.product_type):
            raise ValidationError(
                f"{product.name} is coming soon and cannot be purchased yet",
                details={"product_type": payload.product_type},
            )

        total = pricing.compute_total(
            payload.product_type,
            product.price,
            payload.student_count,
            payload.contract_years,
        )
        subscription = self.store.create_subscription(
            SubscriptionNew(
                school_id=school.id,
                product_type=payload.product_type,
                price_per_student=product.price,
                student_count=payload.student_count,
                total_amount=total,
                contract_years=payload.contract_years,
            )
        )
        logger.info(
            "Subscription created for %s: %s x %d students = %d",
            school.name,
            payload.product_type,
            payload.student_count,
            total,
            extra={"entity_type": "subscription", "entity_id": subscription.id},
        )
        self.audit.record(
            "subscription_created",
            "subscription",
            subscription.id,
            details=f"Subscription for {payload.product_type} created",
        )
        return subscription

    def list(self) -> list[Subscription]:
        return sorted(self.store.get_all_subscriptions(), key=lambda s: s.created_at)

    def get(self, subscription_id: str) -> Subscription:
        subscription = self.store.get_subscription(subscription_id)
        if not subscription:
            raise NotFoundError("Subscription not found")
        return subscription

    def approve(self, subscription_id: str, admin_id: str) -> Subscription:
        with self.store.locked("subscription", subscription_id):
            current = self.get(subscription_id)
            if current.status == SubscriptionStatus.revoked:
                raise _invalid_transition(current, "approved")
            now = self.clock()
            updated = self._update(
                current,
                SubscriptionPatch(
                    status=SubscriptionStatus.active,
                    approved_by_admin=True,
                    approved_at=now,
                    start_date=now,
                    end_date=add_years(now, current.contract_years),
                ),
            )
        self.audit.record(
            "subscription_approved",
            "subscription",
            subscription_id,
            performed_by=admin_id,
            details=f"Subscription approved for {updated.contract_years} year(s)",
        )
        return updated

    def grant_trial(self, subscription_id: str, months: int, admin_id: str) -> Subscription:
        if (
            isinstance(months, bool)
            or not isinstance(months, int)
            or not MIN_TRIAL_MONTHS <= months <= MAX_TRIAL_MONTHS
        ):
            raise ValidationError(
                f"Trial months must be between {MIN_TRIAL_MONTHS} and {MAX_TRIAL_MONTHS}"
            )
        with self.store.locked("subscription", subscription_id):
            current = self.get(subscription_id)
            if current.status == SubscriptionStatus.revoked:
                raise _invalid_transition(current, "trial")
            now = self.clock()
            updated = self._update(
                current,
                SubscriptionPatch(
                    status=SubscriptionStatus.trial,
                    is_trial_active=True,
                    trial_end_date=add_months(now, months),
                    approved_by_admin=True,
                    approved_at=now,
                    start_date=now,
                ),
            )
        self.audit.record(
            "trial_granted",
            "subscription",
            subscription_id,
            performed_by=admin_id,
            details=f"{months} month(s) trial granted",
        )
        return updated

    def revoke(self, subscription_id: str, admin_id: str) -> Subscription:
        with self.store.locked("subscription", subscription_id):
            current = self.get(subscription_id)
            if current.status == SubscriptionStatus.revoked:
                return current
            updated = self._update(
                current,
                SubscriptionPatch(
                    status=SubscriptionStatus.revoked,
                    approved_by_admin=False,
                    is_trial_active=False,
                ),
            )
        self.audit.record(
            "subscription_revoked",
            "subscription",
            subscription_id,
            performed_by=admin_id,
            details="Subscription access revoked",
        )
        return updated

    def mark_paid(self, subscription_id: str) -> Subscription | None:
        """Record a completed payment against the subscription.

        Active and revoked subscriptions are left as they are.
        """
        with self.store.locked("subscription", subscription_id):
            current = self.store.get_subscription(subscription_id)
            if current is None:
                logger.warning("Paid subscription %s no longer exists", subscription_id)
                return None
            if current.status in _PAYMENT_LOCKED_STATUSES:
                logger.info(
                    "Subscription is %s; payment leaves status unchanged",
                    current.status.value,
                    extra={"entity_type": "subscription", "entity_id": subscription_id},
                )
                return current
            if current.status == SubscriptionStatus.paid:
                return current
            return self._update(current, SubscriptionPatch(status=SubscriptionStatus.paid))

    def expire_trials(self, admin_id: str | None = None) -> int:
        """Deactivate trials whose end date has passed. Returns how many."""
        now = self.clock()
        expired = 0
        for candidate in self.store.get_all_subscriptions():
            if not candidate.is_trial_active or candidate.trial_end_date is None:
                continue
            if candidate.trial_end_date >= now:
                continue
            with self.store.locked("subscription", candidate.id):
                current = self.get(candidate.id)
                # Re-check under the lock; an admin may have acted meanwhile.
                if (
                    not current.is_trial_active
                    or current.status != SubscriptionStatus.trial
                    or current.trial_end_date is None
                    or current.trial_end_date >= now
                ):
                    continue
                self._update(current, SubscriptionPatch(is_trial_active=False))
            expired += 1
            self.audit.record(
                "trial_expired",
                "subscription",
                candidate.id,
                performed_by=admin_id,
                details="Trial period ended",
            )
        if expired:
            logger.info("Expired %d trial subscription(s)", expired)
        return expired

    def _update(self, current: Subscription, patch: SubscriptionPatch) -> Subscription:
        updated = self.store.update_subscription(
            current.id, patch, expected_version=current.version
        )
        if updated is None:
            raise NotFoundError("Subscription not found")
        return updated
