from typing import TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

R = TypeVar("R", bound="Record")


class CamelModel(BaseModel):
    """Wire model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(CamelModel):
    """Immutable stored entity. Changes go through ``apply_patch``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )


class Patch(CamelModel):
    """Partial update. Only fields explicitly set are merged."""


def apply_patch(record: R, patch: Patch) -> R:
    """Return a new record with the patch's explicitly-set fields merged in."""
    changes = patch.model_dump(exclude_unset=True)
    if "version" in type(record).model_fields:
        changes["version"] = getattr(record, "version") + 1
    return record.model_copy(update=changes)
