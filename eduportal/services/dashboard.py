from eduportal.models.billing import PaymentStatus, SubscriptionStatus
from eduportal.models.school import SchoolStatus
from eduportal.schemas.dashboard import DashboardStats
from eduportal.services.store import Store


def dashboard_stats(store: Store) -> DashboardStats:
    """Counts for the admin dashboard. Revenue is in rupees."""
    schools = store.get_all_schools()
    subscriptions = store.get_all_subscriptions()
    payments = store.get_all_payments()

    def count_schools(status: SchoolStatus) -> int:
        return sum(1 for s in schools if s.status == status)

    def count_subscriptions(*statuses: SubscriptionStatus) -> int:
        return sum(1 for s in subscriptions if s.status in statuses)

    completed = [p for p in payments if p.status == PaymentStatus.completed]
    return DashboardStats(
        total_schools=len(schools),
        pending_schools=count_schools(SchoolStatus.pending),
        approved_schools=count_schools(SchoolStatus.approved),
        rejected_schools=count_schools(SchoolStatus.rejected),
        total_subscriptions=len(subscriptions),
        active_subscriptions=count_subscriptions(
            SubscriptionStatus.active, SubscriptionStatus.trial
        ),
        pending_subscriptions=count_subscriptions(
            SubscriptionStatus.pending, SubscriptionStatus.paid
        ),
        revoked_subscriptions=count_subscriptions(SubscriptionStatus.revoked),
        total_revenue=sum(p.amount for p in completed) / 100,
        total_payments=len(payments),
    )
