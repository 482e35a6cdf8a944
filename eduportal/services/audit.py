import logging

from eduportal.schemas.audit import AuditLog, AuditLogNew
from eduportal.services.store import Store

logger = logging.getLogger(__name__)


class AuditService:
    """Append-only trail of state-changing operations."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        performed_by: str | None = None,
        details: str | None = None,
    ) -> AuditLog | None:
        """Append an entry. Failures are logged and never propagate."""
        try:
            return self.store.create_audit_log(
                AuditLogNew(
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    performed_by=performed_by,
                    details=details,
                )
            )
        except Exception:
            logger.exception(
                "Failed to record audit entry %s",
                action,
                extra={"entity_type": entity_type, "entity_id": entity_id},
            )
            return None

    def list(self, limit: int | None = None, offset: int = 0) -> list[AuditLog]:
        return self.store.get_audit_logs(limit=limit, offset=offset)
