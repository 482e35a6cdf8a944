"""Tests for school registration and review."""

import pytest

from eduportal.errors import NotFoundError, ValidationError
from eduportal.models.school import SchoolStatus
from eduportal.schemas.school import SchoolCreate
from tests.helpers import school_payload


@pytest.fixture()
def admin(services):
    return services.store.get_all_admins()[0]


class TestRegister:
    def test_creates_pending_school(self, services) -> None:
        school = services.schools.register(SchoolCreate(**school_payload()))
        assert school.status == SchoolStatus.pending
        assert services.schools.get(school.id) == school

        entry = services.audit.list()[0]
        assert entry.action == "school_registered"
        assert entry.entity_id == school.id
        assert entry.performed_by is None

    def test_duplicate_email_case_insensitive(self, services) -> None:
        services.schools.register(SchoolCreate(**school_payload()))
        with pytest.raises(ValidationError):
            services.schools.register(
                SchoolCreate(**school_payload(email="OFFICE@GreenValley.example"))
            )
        assert len(services.schools.list()) == 1

    def test_unknown_school(self, services) -> None:
        with pytest.raises(NotFoundError):
            services.schools.get("missing")


class TestReview:
    def test_approve(self, services, admin) -> None:
        school = services.schools.register(SchoolCreate(**school_payload()))
        approved = services.schools.approve(school.id, admin.id)
        assert approved.status == SchoolStatus.approved
        entry = services.audit.list()[0]
        assert entry.action == "school_approved"
        assert entry.performed_by == admin.id

    def test_reject(self, services, admin) -> None:
        school = services.schools.register(SchoolCreate(**school_payload()))
        assert services.schools.reject(school.id, admin.id).status == SchoolStatus.rejected
        assert services.audit.list()[0].action == "school_rejected"

    def test_reapplying_same_status_is_noop(self, services, admin) -> None:
        school = services.schools.register(SchoolCreate(**school_payload()))
        first = services.schools.approve(school.id, admin.id)
        second = services.schools.approve(school.id, admin.id)
        assert second.version == first.version
        actions = [e.action for e in services.audit.list()]
        assert actions.count("school_approved") == 1

    def test_cannot_cross_from_approved_to_rejected(self, services, admin) -> None:
        school = services.schools.register(SchoolCreate(**school_payload()))
        services.schools.approve(school.id, admin.id)
        with pytest.raises(ValidationError) as exc_info:
            services.schools.reject(school.id, admin.id)
        assert exc_info.value.details["code"] == "invalid_transition"
        assert services.schools.get(school.id).status == SchoolStatus.approved

    def test_unknown_school(self, services, admin) -> None:
        with pytest.raises(NotFoundError):
            services.schools.approve("missing", admin.id)
