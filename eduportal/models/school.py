import enum
import uuid

from sqlalchemy import Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eduportal.db import Base, TimestampMixin, VersionMixin

# ── Enums ────────────────────────────────────────────────


class SchoolStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# ── School ───────────────────────────────────────────────


class School(TimestampMixin, VersionMixin, Base):
    __tablename__ = "schools"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str | None] = mapped_column(String(120))
    state: Mapped[str | None] = mapped_column(String(120))
    pincode: Mapped[str | None] = mapped_column(String(20))
    principal_name: Mapped[str | None] = mapped_column(String(255))
    gst_number: Mapped[str | None] = mapped_column(String(40))
    tin_number: Mapped[str | None] = mapped_column(String(40))
    pan_number: Mapped[str | None] = mapped_column(String(40))
    registration_number: Mapped[str | None] = mapped_column(String(80))
    student_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[SchoolStatus] = mapped_column(
        Enum(SchoolStatus), nullable=False, default=SchoolStatus.pending
    )
