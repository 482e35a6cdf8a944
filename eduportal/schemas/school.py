import re
from datetime import datetime

from pydantic import Field, field_validator

from eduportal.models.school import SchoolStatus
from eduportal.schemas.common import CamelModel, Patch, Record

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# ── School ───────────────────────────────────────────────


class SchoolBase(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    phone: str = Field(min_length=1, max_length=40)
    address: str = Field(min_length=1)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=120)
    pincode: str | None = Field(default=None, max_length=20)
    principal_name: str | None = Field(default=None, max_length=255)
    gst_number: str | None = Field(default=None, max_length=40)
    tin_number: str | None = Field(default=None, max_length=40)
    pan_number: str | None = Field(default=None, max_length=40)
    registration_number: str | None = Field(default=None, max_length=80)
    student_count: int = Field(default=0, ge=0)


class SchoolCreate(SchoolBase):
    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_RE.match(value):
            raise ValueError("Invalid email address")
        return value

    @field_validator("name", "phone", "address")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field cannot be blank")
        return value


class School(Record):
    id: str
    name: str
    email: str
    phone: str
    address: str
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    principal_name: str | None = None
    gst_number: str | None = None
    tin_number: str | None = None
    pan_number: str | None = None
    registration_number: str | None = None
    student_count: int = 0
    status: SchoolStatus = SchoolStatus.pending
    created_at: datetime
    version: int = 1


class SchoolPatch(Patch):
    status: SchoolStatus | None = None
