"""SQLAlchemy-backed store.

Rows are converted to the same frozen records the memory store returns, so
callers never hold live ORM objects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func, select, text
from sqlalchemy.orm import Session

from eduportal import models
from eduportal.db import Base, get_engine, get_sessionmaker
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
from eduportal.services.common import Clock, as_utc, new_id, utc_now
from eduportal.services.store import Store, check_version

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = (
    "created_at",
    "trial_end_date",
    "start_date",
    "end_date",
    "approved_at",
    "paid_at",
    "valid_from",
    "valid_until",
)


def _to_record(record_cls: type[Record], row: Any) -> Any:
    record = record_cls.model_validate(row)
    # SQLite drops tzinfo on the way back.
    fixes = {
        name: as_utc(getattr(record, name))
        for name in _DATETIME_FIELDS
        if name in record_cls.model_fields and getattr(record, name) is not None
    }
    return record.model_copy(update=fixes) if fixes else record


class SqlStore(Store):
    """Store records in any database SQLAlchemy can reach."""

    _KINDS: dict[str, tuple[type, type[Record]]] = {
        "admin": (models.Admin, Admin),
        "school": (models.School, School),
        "subscription": (models.Subscription, Subscription),
        "payment": (models.Payment, Payment),
        "document": (models.Document, Document),
    }

    def __init__(self, database_url: str, clock: Clock = utc_now) -> None:
        super().__init__(clock)
        self._engine = get_engine(database_url)
        Base.metadata.create_all(self._engine)
        self._sessionmaker = get_sessionmaker(self._engine)
        logger.info("SQL store ready (%s)", self._engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        self._engine.dispose()

    def ping(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._sessionmaker()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _get(self, kind: str, entity_id: str) -> Any:
        orm_cls, record_cls = self._KINDS[kind]
        with self._session() as db:
            row = db.get(orm_cls, entity_id)
            return _to_record(record_cls, row) if row is not None else None

    def _select(self, kind: str, *criteria: Any) -> list[Any]:
        orm_cls, record_cls = self._KINDS[kind]
        stmt = select(orm_cls).where(*criteria).order_by(orm_cls.created_at)
        with self._session() as db:
            return [_to_record(record_cls, row) for row in db.scalars(stmt).all()]

    def _insert(self, kind: str, values: dict[str, Any]) -> Any:
        orm_cls, record_cls = self._KINDS[kind]
        values = {"id": new_id(), "created_at": self._clock(), **values}
        with self._session() as db:
            row = orm_cls(**values)
            db.add(row)
            db.flush()
            record = _to_record(record_cls, row)
        logger.debug("Stored %s %s", kind, record.id)
        return record

    def _update(
        self, kind: str, entity_id: str, patch: Patch, expected_version: int | None
    ) -> Any:
        orm_cls, record_cls = self._KINDS[kind]
        with self._session() as db:
            row = db.get(orm_cls, entity_id, with_for_update=True)
            if row is None:
                return None
            current = _to_record(record_cls, row)
            check_version(kind, current, expected_version)
            updated = apply_patch(current, patch)
            for name in patch.model_dump(exclude_unset=True):
                setattr(row, name, getattr(updated, name))
            row.version = updated.version
            return updated

    # ── Admins ───────────────────────────────────────────

    def get_admin(self, admin_id: str) -> Admin | None:
        return self._get("admin", admin_id)

    def get_admin_by_email(self, email: str) -> Admin | None:
        rows = self._select(
            "admin", func.lower(models.Admin.email) == email.strip().lower()
        )
        return rows[0] if rows else None

    def create_admin(self, data: AdminNew) -> Admin:
        return self._insert("admin", data.model_dump())

    def get_all_admins(self) -> list[Admin]:
        return self._select("admin")

    # ── Schools ──────────────────────────────────────────

    def get_school(self, school_id: str) -> School | None:
        return self._get("school", school_id)

    def get_school_by_email(self, email: str) -> School | None:
        rows = self._select(
            "school", func.lower(models.School.email) == email.strip().lower()
        )
        return rows[0] if rows else None

    def create_school(self, data: SchoolCreate) -> School:
        return self._insert(
            "school", {**data.model_dump(), "status": SchoolStatus.pending, "version": 1}
        )

    def update_school(
        self, school_id: str, patch: SchoolPatch, expected_version: int | None = None
    ) -> School | None:
        return self._update("school", school_id, patch, expected_version)

    def get_all_schools(self) -> list[School]:
        return self._select("school")

    # ── Subscriptions ────────────────────────────────────

    def get_subscription(self, subscription_id: str) -> Subscription | None:
        return self._get("subscription", subscription_id)

    def get_subscriptions_by_school(self, school_id: str) -> list[Subscription]:
        return self._select(
            "subscription", models.Subscription.school_id == school_id
        )

    def create_subscription(self, data: SubscriptionNew) -> Subscription:
        return self._insert(
            "subscription",
            {
                **data.model_dump(),
                "status": SubscriptionStatus.pending,
                "approved_by_admin": False,
                "is_trial_active": False,
                "version": 1,
            },
        )

    def update_subscription(
        self,
        subscription_id: str,
        patch: SubscriptionPatch,
        expected_version: int | None = None,
    ) -> Subscription | None:
        return self._update("subscription", subscription_id, patch, expected_version)

    def get_all_subscriptions(self) -> list[Subscription]:
        return self._select("subscription")

    # ── Payments ─────────────────────────────────────────

    def get_payment(self, payment_id: str) -> Payment | None:
        return self._get("payment", payment_id)

    def get_payments_by_school(self, school_id: str) -> list[Payment]:
        return self._select("payment", models.Payment.school_id == school_id)

    def create_payment(self, data: PaymentNew) -> Payment:
        return self._insert(
            "payment",
            {**data.model_dump(), "status": PaymentStatus.pending, "version": 1},
        )

    def update_payment(
        self, payment_id: str, patch: PaymentPatch, expected_version: int | None = None
    ) -> Payment | None:
        return self._update("payment", payment_id, patch, expected_version)

    def get_all_payments(self) -> list[Payment]:
        return self._select("payment")

    # ── Documents ────────────────────────────────────────

    def get_document(self, document_id: str) -> Document | None:
        return self._get("document", document_id)

    def get_documents_by_school(self, school_id: str) -> list[Document]:
        return self._select("document", models.Document.school_id == school_id)

    def create_document(self, data: DocumentNew) -> Document:
        return self._insert("document", data.model_dump())

    def get_all_documents(self) -> list[Document]:
        return self._select("document")

    # ── Audit logs ───────────────────────────────────────

    def create_audit_log(self, data: AuditLogNew) -> AuditLog:
        values = {"id": new_id(), "created_at": self._clock(), **data.model_dump()}
        with self._session() as db:
            row = models.AuditLog(**values)
            db.add(row)
            db.flush()
            return _to_record(AuditLog, row)

    def get_audit_logs(self, limit: int | None = None, offset: int = 0) -> list[AuditLog]:
        stmt = (
            select(models.AuditLog)
            .order_by(models.AuditLog.created_at.desc(), models.AuditLog.seq.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as db:
            return [_to_record(AuditLog, row) for row in db.scalars(stmt).all()]
