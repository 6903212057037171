# ============================================================================
# FILE: musicvault/db/models/base.py
# ============================================================================
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    """
    Base for records persisted in the JSON document files.

    Fields are stored in camelCase; unknown keys are preserved so a
    load/save round trip never drops data written by other tools.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )

    @field_validator("*")
    @classmethod
    def _naive_datetimes_are_utc(cls, value: Any) -> Any:
        # Stored timestamps without an offset are read as UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def dump(self) -> dict:
        """JSON-ready dict using the stored (camelCase) field names"""
        return self.model_dump(mode="json", by_alias=True)
