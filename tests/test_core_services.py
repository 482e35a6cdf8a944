"""Tests for record patching and calendar arithmetic."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from eduportal.models.school import SchoolStatus
from eduportal.schemas.common import apply_patch
from eduportal.schemas.school import School, SchoolCreate, SchoolPatch
from eduportal.services.common import add_months, add_years, as_utc, epoch_millis
from tests.helpers import START, school_payload


def _school() -> School:
    return School(
        id="s1",
        created_at=START,
        **SchoolCreate(**school_payload()).model_dump(),
    )


class TestApplyPatch:
    def test_only_explicit_fields_are_merged(self) -> None:
        school = _school()
        updated = apply_patch(school, SchoolPatch(status=SchoolStatus.approved))
        assert updated.status == SchoolStatus.approved
        assert updated.name == school.name
        assert updated.version == school.version + 1

    def test_original_is_untouched(self) -> None:
        school = _school()
        apply_patch(school, SchoolPatch(status=SchoolStatus.rejected))
        assert school.status == SchoolStatus.pending
        assert school.version == 1

    def test_empty_patch_only_bumps_version(self) -> None:
        school = _school()
        updated = apply_patch(school, SchoolPatch())
        assert updated.model_dump(exclude={"version"}) == school.model_dump(exclude={"version"})
        assert updated.version == 2

    def test_records_are_frozen(self) -> None:
        school = _school()
        with pytest.raises(PydanticValidationError):
            school.name = "Other"  # type: ignore[misc]


class TestSchoolCreate:
    def test_email_is_normalized(self) -> None:
        payload = SchoolCreate(**school_payload(email="  Office@School.Example "))
        assert payload.email == "office@school.example"

    def test_camel_and_snake_case_accepted(self) -> None:
        camel = SchoolCreate(**school_payload(principalName="A"))
        snake = SchoolCreate(**{**school_payload(), "principal_name": "A"})
        assert camel.principal_name == snake.principal_name == "A"

    @pytest.mark.parametrize("field", ["name", "phone", "address"])
    def test_blank_required_fields_rejected(self, field: str) -> None:
        with pytest.raises(PydanticValidationError):
            SchoolCreate(**school_payload(**{field: "   "}))

    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            SchoolCreate(**school_payload(email="not-an-email"))

    def test_negative_student_count_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            SchoolCreate(**school_payload(studentCount=-1))


class TestCalendarArithmetic:
    def test_add_months_simple(self) -> None:
        assert add_months(datetime(2025, 1, 15, tzinfo=UTC), 2) == datetime(
            2025, 3, 15, tzinfo=UTC
        )

    def test_add_months_clamps_to_month_end(self) -> None:
        assert add_months(datetime(2025, 1, 31, tzinfo=UTC), 1) == datetime(
            2025, 2, 28, tzinfo=UTC
        )
        assert add_months(datetime(2024, 1, 31, tzinfo=UTC), 1) == datetime(
            2024, 2, 29, tzinfo=UTC
        )

    def test_add_months_crosses_year(self) -> None:
        assert add_months(datetime(2025, 11, 30, 8, 30, tzinfo=UTC), 3) == datetime(
            2026, 2, 28, 8, 30, tzinfo=UTC
        )

    def test_add_years_from_leap_day(self) -> None:
        assert add_years(datetime(2024, 2, 29, tzinfo=UTC), 1) == datetime(
            2025, 2, 28, tzinfo=UTC
        )

    def test_add_years_keeps_time_of_day(self) -> None:
        assert add_years(START, 2) == datetime(2027, 1, 15, 10, 0, tzinfo=UTC)


class TestHelpers:
    def test_as_utc_adds_tz_to_naive(self) -> None:
        assert as_utc(datetime(2025, 1, 1)) == datetime(2025, 1, 1, tzinfo=UTC)

    def test_as_utc_passes_none(self) -> None:
        assert as_utc(None) is None

    def test_epoch_millis(self) -> None:
        assert epoch_millis(datetime(1970, 1, 1, 0, 0, 1, tzinfo=UTC)) == 1000
