from datetime import datetime

from eduportal.schemas.common import CamelModel, Record


class AuditLogNew(CamelModel):
    action: str
    entity_type: str
    entity_id: str
    performed_by: str | None = None
    details: str | None = None


class AuditLog(Record):
    id: str
    action: str
    entity_type: str
    entity_id: str
    performed_by: str | None = None
    details: str | None = None
    created_at: datetime
