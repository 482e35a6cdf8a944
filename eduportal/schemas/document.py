from datetime import datetime

from pydantic import Field

from eduportal.schemas.common import CamelModel, Record


class DocumentGenerate(CamelModel):
    school_id: str = Field(min_length=1)
    subscription_id: str | None = None
    type: str = Field(min_length=1, max_length=60, pattern=r"^[A-Za-z0-9_-]+$")


class DocumentNew(CamelModel):
    school_id: str
    subscription_id: str | None = None
    type: str
    document_number: str
    valid_from: datetime
    valid_until: datetime
    data: str


class Document(Record):
    id: str
    school_id: str
    subscription_id: str | None = None
    type: str
    document_number: str
    valid_from: datetime
    valid_until: datetime
    data: str
    created_at: datetime
