"""Remote record models.

A :class:`Record` is the key-value representation of one entity in the
private cloud database.  Field values are plain Python values:
``str``, ``int``, ``datetime``, ``bytes`` or :class:`RecordReference`.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReferenceAction(StrEnum):
    NONE = "NONE"
    DELETE_SELF = "DELETE_SELF"


def record_name_for(record_type: str, entity_id: uuid.UUID) -> str:
    """Deterministic record name ``{recordType}_{UUID}`` (upper-case UUID)."""
    return f"{record_type}_{str(entity_id).upper()}"


def entity_id_from_record_name(record_name: str, record_type: str) -> uuid.UUID | None:
    """Strip the ``{recordType}_`` prefix and parse the remaining UUID.

    Returns ``None`` when the name does not carry the expected prefix or
    the suffix is not a UUID.
    """
    prefix = f"{record_type}_"
    if not record_name.startswith(prefix):
        return None
    try:
        return uuid.UUID(record_name[len(prefix) :])
    except ValueError:
        return None


class RecordReference(BaseModel):
    """Pointer from one record to another record in the same zone."""

    model_config = ConfigDict(frozen=True)

    record_name: str
    action: ReferenceAction = ReferenceAction.NONE


class Record(BaseModel):
    """One remote record keyed by its deterministic ``record_name``."""

    record_type: str
    record_name: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    """Server creation time; ``None`` until the record was stored remotely."""

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)
