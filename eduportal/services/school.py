"""School registration and admin review."""

import logging

from eduportal.errors import NotFoundError, ValidationError
from eduportal.models.school import SchoolStatus
from eduportal.schemas.school import School, SchoolCreate, SchoolPatch
from eduportal.services.audit import AuditService
from eduportal.services.store import Store

logger = logging.getLogger(__name__)


class SchoolService:
    def __init__(self, store: Store, audit: AuditService) -> None:
        self.store = store
        self.audit = audit

    def register(self, payload: SchoolCreate) -> School:
        # Serialize on the email so two concurrent sign-ups cannot both pass the check.
        with self.store.locked("school_email", payload.email):
            if self.store.get_school_by_email(payload.email):
                raise ValidationError("School with this email already exists")
            school = self.store.create_school(payload)
        logger.info(
            "Registered school %s",
            school.name,
            extra={"entity_type": "school", "entity_id": school.id},
        )
        self.audit.record(
            "school_registered",
            "school",
            school.id,
            details=f"School {school.name} registered",
        )
        return school

    def list(self) -> list[School]:
        return sorted(self.store.get_all_schools(), key=lambda s: s.created_at)

    def get(self, school_id: str) -> School:
        school = self.store.get_school(school_id)
        if not school:
            raise NotFoundError("School not found")
        return school

    def approve(self, school_id: str, admin_id: str) -> School:
        return self._decide(school_id, SchoolStatus.approved, admin_id)

    def reject(self, school_id: str, admin_id: str) -> School:
        return self._decide(school_id, SchoolStatus.rejected, admin_id)

    def _decide(self, school_id: str, target: SchoolStatus, admin_id: str) -> School:
        with self.store.locked("school", school_id):
            school = self.get(school_id)
            if school.status == target:
                return school
            if school.status != SchoolStatus.pending:
                raise ValidationError(
                    f"School is already {school.status.value}",
                    details={
                        "code": "invalid_transition",
                        "from": school.status.value,
                        "to": target.value,
                    },
                )
            updated = self.store.update_school(
                school_id, SchoolPatch(status=target), expected_version=school.version
            )
        if updated is None:
            raise NotFoundError("School not found")

        logger.info(
            "School %s %s",
            updated.name,
            target.value,
            extra={"actor_id": admin_id, "entity_type": "school", "entity_id": school_id},
        )
        self.audit.record(
            f"school_{target.value}",
            "school",
            school_id,
            performed_by=admin_id,
            details=f"School {updated.name} {target.value}",
        )
        return updated
