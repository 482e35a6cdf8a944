from eduportal.schemas.common import CamelModel


class DashboardStats(CamelModel):
    total_schools: int = 0
    pending_schools: int = 0
    approved_schools: int = 0
    rejected_schools: int = 0
    total_subscriptions: int = 0
    active_subscriptions: int = 0
    pending_subscriptions: int = 0
    revoked_subscriptions: int = 0
    total_revenue: float = 0
    total_payments: int = 0
