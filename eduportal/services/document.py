import json
import logging

from eduportal.errors import NotFoundError
from eduportal.schemas.document import Document, DocumentGenerate, DocumentNew
from eduportal.services.audit import AuditService
from eduportal.services.common import Clock, add_years, epoch_millis, utc_now
from eduportal.services.store import Store

logger = logging.getLogger(__name__)


class DocumentService:
    """Issues certificates and agreements for registered schools."""

    def __init__(self, store: Store, audit: AuditService, clock: Clock = utc_now) -> None:
        self.store = store
        self.audit = audit
        self.clock = clock

    def generate(self, payload: DocumentGenerate, admin_id: str) -> Document:
        school = self.store.get_school(payload.school_id)
        if not school:
            raise NotFoundError("School not found")

        subscription = None
        if payload.subscription_id:
            subscription = self.store.get_subscription(payload.subscription_id)
            if not subscription or subscription.school_id != school.id:
                raise NotFoundError("Subscription not found")

        now = self.clock()
        valid_until = add_years(now, 1)
        data = {
            "school": school.model_dump(mode="json", by_alias=True),
            "subscription": (
                subscription.model_dump(mode="json", by_alias=True)
                if subscription
                else None
            ),
            "generatedAt": now.isoformat(),
            "validUntil": valid_until.isoformat(),
        }
        document = self.store.create_document(
            DocumentNew(
                school_id=school.id,
                subscription_id=subscription.id if subscription else None,
                type=payload.type,
                document_number=f"{payload.type.upper()}-{epoch_millis(now)}",
                valid_from=now,
                valid_until=valid_until,
                data=json.dumps(data),
            )
        )
        logger.info(
            "Generated %s %s",
            payload.type,
            document.document_number,
            extra={"actor_id": admin_id, "entity_type": "document", "entity_id": document.id},
        )
        self.audit.record(
            "document_generated",
            "document",
            document.id,
            performed_by=admin_id,
            details=f"{payload.type} generated for {school.name}",
        )
        return document

    def list(self) -> list[Document]:
        return sorted(self.store.get_all_documents(), key=lambda d: d.created_at)

    def get(self, document_id: str) -> Document:
        document = self.store.get_document(document_id)
        if not document:
            raise NotFoundError("Document not found")
        return document
