from eduportal.models.admin import Admin  # noqa: F401
from eduportal.models.audit import AuditLog  # noqa: F401
from eduportal.models.billing import (  # noqa: F401
    Payment,
    PaymentStatus,
    Subscription,
    SubscriptionStatus,
)
from eduportal.models.document import Document  # noqa: F401
from eduportal.models.school import School, SchoolStatus  # noqa: F401
