"""Persistence backend abstraction for the portal's records.

Supports an in-process memory store and a SQLAlchemy-backed store. The
backend is selected via ``settings.store_backend`` ("memory" or "sql").

Every backend exposes the same get/create/update/list contract per entity:
lookups return ``None`` for unknown ids, ``create_*`` assigns a fresh id and
``created_at``, ``update_*`` merges a typed patch and returns the merged record
(or ``None`` when the id is unknown).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Any

from eduportal.config import Settings
from eduportal.errors import ConflictError
from eduportal.models.billing import PaymentStatus, SubscriptionStatus
from eduportal.models.school import SchoolStatus
from eduportal.schemas.audit import AuditLog, AuditLogNew
from eduportal.schemas.auth import Admin, AdminNew
from eduportal.schemas.billing import (
    Payment,
    PaymentNew,
    PaymentPatch,
    Subscription,
    SubscriptionNew,
    SubscriptionPatch,
)
from eduportal.schemas.common import Patch, Record, apply_patch
from eduportal.schemas.document import Document, DocumentNew
from eduportal.schemas.school import School, SchoolCreate, SchoolPatch
from eduportal.services.common import Clock, new_id, utc_now

logger = logging.getLogger(__name__)


def check_version(kind: str, record: Record, expected_version: int | None) -> None:
    if expected_version is None:
        return
    current = getattr(record, "version", None)
    if current != expected_version:
        raise ConflictError(
            f"{kind.capitalize()} was modified concurrently",
            details={"expected_version": expected_version, "current_version": current},
        )


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = RLock()
        self.users = 0


class Store(ABC):
    """Abstract system-of-record interface."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._key_locks: dict[tuple[str, str], _KeyLock] = {}
        self._key_locks_guard = Lock()

    @contextmanager
    def locked(self, kind: str, key: str) -> Iterator[None]:
        """Serialize a read-compute-write sequence on one entity key.

        An entry lives only while some thread holds or waits on it, so keys
        chosen by callers do not accumulate.
        """
        lock_key = (kind, key)
        with self._key_locks_guard:
            entry = self._key_locks.get(lock_key)
            if entry is None:
                entry = self._key_locks[lock_key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._key_locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._key_locks[lock_key]

    def close(self) -> None:
        """Release backend resources."""

    def ping(self) -> None:
        """Raise if the backend cannot be reached."""

    # ── Admins ───────────────────────────────────────────

    @abstractmethod
    def get_admin(self, admin_id: str) -> Admin | None: ...

    @abstractmethod
    def get_admin_by_email(self, email: str) -> Admin | None: ...

    @abstractmethod
    def create_admin(self, data: AdminNew) -> Admin: ...

    @abstractmethod
    def get_all_admins(self) -> list[Admin]: ...

    # ── Schools ──────────────────────────────────────────

    @abstractmethod
    def get_school(self, school_id: str) -> School | None: ...

    @abstractmethod
    def get_school_by_email(self, email: str) -> School | None: ...

    @abstractmethod
    def create_school(self, data: SchoolCreate) -> School: ...

    @abstractmethod
    def update_school(
        self, school_id: str, patch: SchoolPatch, expected_version: int | None = None
    ) -> School | None: ...

    @abstractmethod
    def get_all_schools(self) -> list[School]: ...

    # ── Subscriptions ────────────────────────────────────

    @abstractmethod
    def get_subscription(self, subscription_id: str) -> Subscription | None: ...

    @abstractmethod
    def get_subscriptions_by_school(self, school_id: str) -> list[Subscription]: ...

    @abstractmethod
    def create_subscription(self, data: SubscriptionNew) -> Subscription: ...

    @abstractmethod
    def update_subscription(
        self,
        subscription_id: str,
        patch: SubscriptionPatch,
        expected_version: int | None = None,
    ) -> Subscription | None: ...

    @abstractmethod
    def get_all_subscriptions(self) -> list[Subscription]: ...

    # ── Payments ─────────────────────────────────────────

    @abstractmethod
    def get_payment(self, payment_id: str) -> Payment | None: ...

    @abstractmethod
    def get_payments_by_school(self, school_id: str) -> list[Payment]: ...

    @abstractmethod
    def create_payment(self, data: PaymentNew) -> Payment: ...

    @abstractmethod
    def update_payment(
        self, payment_id: str, patch: PaymentPatch, expected_version: int | None = None
    ) -> Payment | None: ...

    @abstractmethod
    def get_all_payments(self) -> list[Payment]: ...

    # ── Documents ────────────────────────────────────────

    @abstractmethod
    def get_document(self, document_id: str) -> Document | None: ...

    @abstractmethod
    def get_documents_by_school(self, school_id: str) -> list[Document]: ...

    @abstractmethod
    def create_document(self, data: DocumentNew) -> Document: ...

    @abstractmethod
    def get_all_documents(self) -> list[Document]: ...

    # ── Audit logs ───────────────────────────────────────

    @abstractmethod
    def create_audit_log(self, data: AuditLogNew) -> AuditLog: ...

    @abstractmethod
    def get_audit_logs(self, limit: int | None = None, offset: int = 0) -> list[AuditLog]:
        """Return audit entries newest first."""


class MemoryStore(Store):
    """Keep records in process memory. Lost on restart."""

    def __init__(self, clock: Clock = utc_now) -> None:
        super().__init__(clock)
        self._lock = Lock()
        self._tables: dict[str, dict[str, Any]] = {
            "admin": {},
            "school": {},
            "subscription": {},
            "payment": {},
            "document": {},
        }
        self._audit_logs: list[AuditLog] = []

    def _get(self, kind: str, entity_id: str) -> Any:
        with self._lock:
            return self._tables[kind].get(entity_id)

    def _all(self, kind: str) -> list[Any]:
        with self._lock:
            return list(self._tables[kind].values())

    def _insert(self, kind: str, record: Record) -> Any:
        with self._lock:
            self._tables[kind][record.id] = record  # type: ignore[attr-defined]
        logger.debug("Stored %s %s", kind, record.id)  # type: ignore[attr-defined]
        return record

    def _update(
        self, kind: str, entity_id: str, patch: Patch, expected_version: int | None
    ) -> Any:
        with self._lock:
            current = self._tables[kind].get(entity_id)
            if current is None:
                return None
            check_version(kind, current, expected_version)
            updated = apply_patch(current, patch)
            self._tables[kind][entity_id] = updated
            return updated

    def _stamp(self) -> dict[str, Any]:
        return {"id": new_id(), "created_at": self._clock()}

    # ── Admins ───────────────────────────────────────────

    def get_admin(self, admin_id: str) -> Admin | None:
        return self._get("admin", admin_id)

    def get_admin_by_email(self, email: str) -> Admin | None:
        needle = email.strip().lower()
        return next(
            (a for a in self._all("admin") if a.email.lower() == needle), None
        )

    def create_admin(self, data: AdminNew) -> Admin:
        admin = Admin(**data.model_dump(), **self._stamp())
        return self._insert("admin", admin)

    def get_all_admins(self) -> list[Admin]:
        return self._all("admin")

    # ── Schools ──────────────────────────────────────────

    def get_school(self, school_id: str) -> School | None:
        return self._get("school", school_id)

    def get_school_by_email(self, email: str) -> School | None:
        needle = email.strip().lower()
        return next(
            (s for s in self._all("school") if s.email.lower() == needle), None
        )

    def create_school(self, data: SchoolCreate) -> School:
        school = School(
            **data.model_dump(), **self._stamp(), status=SchoolStatus.pending
        )
        return self._insert("school", school)

    def update_school(
        self, school_id: str, patch: SchoolPatch, expected_version: int | None = None
    ) -> School | None:
        return self._update("school", school_id, patch, expected_version)

    def get_all_schools(self) -> list[School]:
        return self._all("school")

    # ── Subscriptions ────────────────────────────────────

    def get_subscription(self, subscription_id: str) -> Subscription | None:
        return self._get("subscription", subscription_id)

    def get_subscriptions_by_school(self, school_id: str) -> list[Subscription]:
        return [s for s in self._all("subscription") if s.school_id == school_id]

    def create_subscription(self, data: SubscriptionNew) -> Subscription:
        subscription = Subscription(
            **data.model_dump(),
            **self._stamp(),
            status=SubscriptionStatus.pending,
            approved_by_admin=False,
            is_trial_active=False,
        )
        return self._insert("subscription", subscription)

    def update_subscription(
        self,
        subscription_id: str,
        patch: SubscriptionPatch,
        expected_version: int | None = None,
    ) -> Subscription | None:
        return self._update("subscription", subscription_id, patch, expected_version)

    def get_all_subscriptions(self) -> list[Subscription]:
        return self._all("subscription")

    # ── Payments ─────────────────────────────────────────

    def get_payment(self, payment_id: str) -> Payment | None:
        return self._get("payment", payment_id)

    def get_payments_by_school(self, school_id: str) -> list[Payment]:
        return [p for p in self._all("payment") if p.school_id == school_id]

    def create_payment(self, data: PaymentNew) -> Payment:
        payment = Payment(
            **data.model_dump(), **self._stamp(), status=PaymentStatus.pending
        )
        return self._insert("payment", payment)

    def update_payment(
        self, payment_id: str, patch: PaymentPatch, expected_version: int | None = None
    ) -> Payment | None:
        return self._update("payment", payment_id, patch, expected_version)

    def get_all_payments(self) -> list[Payment]:
        return self._all("payment")

    # ── Documents ────────────────────────────────────────

    def get_document(self, document_id: str) -> Document | None:
        return self._get("document", document_id)

    def get_documents_by_school(self, school_id: str) -> list[Document]:
        return [d for d in self._all("document") if d.school_id == school_id]

    def create_document(self, data: DocumentNew) -> Document:
        document = Document(**data.model_dump(), **self._stamp())
        return self._insert("document", document)

    def get_all_documents(self) -> list[Document]:
        return self._all("document")

    # ── Audit logs ───────────────────────────────────────

    def create_audit_log(self, data: AuditLogNew) -> AuditLog:
        entry = AuditLog(**data.model_dump(), **self._stamp())
        with self._lock:
            self._audit_logs.append(entry)
        return entry

    def get_audit_logs(self, limit: int | None = None, offset: int = 0) -> list[AuditLog]:
        with self._lock:
            newest_first = list(reversed(self._audit_logs))
        # Stable sort keeps newest-inserted first among equal timestamps.
        newest_first.sort(key=lambda entry: entry.created_at, reverse=True)
        end = None if limit is None else offset + limit
        return newest_first[offset:end]


def get_store(settings: Settings, clock: Clock = utc_now) -> Store:
    """Return the configured store backend instance."""
    backend = settings.store_backend
    if backend == "sql":
        from eduportal.services.sql_store import SqlStore

        return SqlStore(settings.database_url, clock=clock)
    if backend != "memory":
        logger.warning("Unknown store backend %r, using memory", backend)
    return MemoryStore(clock=clock)
