"""Wiring of the stateful components shared by request handlers."""

from dataclasses import dataclass
from datetime import timedelta

from eduportal.config import Settings
from eduportal.services.audit import AuditService
from eduportal.services.auth import seed_admin
from eduportal.services.common import Clock, utc_now
from eduportal.services.document import DocumentService
from eduportal.services.payment import PaymentService
from eduportal.services.payment_gateway import RazorpayGateway
from eduportal.services.school import SchoolService
from eduportal.services.sessions import SessionRegistry
from eduportal.services.store import Store, get_store
from eduportal.services.subscription import SubscriptionService


@dataclass
class Services:
    settings: Settings
    clock: Clock
    store: Store
    audit: AuditService
    sessions: SessionRegistry
    gateway: RazorpayGateway
    schools: SchoolService
    subscriptions: SubscriptionService
    payments: PaymentService
    documents: DocumentService

    def close(self) -> None:
        self.store.close()


def build_services(
    settings: Settings, clock: Clock = utc_now, store: Store | None = None
) -> Services:
    store = store or get_store(settings, clock=clock)
    audit = AuditService(store)
    gateway = RazorpayGateway.from_settings(settings)
    subscriptions = SubscriptionService(store, audit, clock=clock)
    services = Services(
        settings=settings,
        clock=clock,
        store=store,
        audit=audit,
        sessions=SessionRegistry(
            store, audit, clock=clock, ttl=timedelta(hours=settings.session_ttl_hours)
        ),
        gateway=gateway,
        schools=SchoolService(store, audit),
        subscriptions=subscriptions,
        payments=PaymentService(
            store,
            audit,
            gateway,
            subscriptions,
            clock=clock,
            currency=settings.payment_currency,
        ),
        documents=DocumentService(store, audit, clock=clock),
    )
    seed_admin(store, settings)
    return services
