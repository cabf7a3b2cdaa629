"""Base model shared by all persisted entities.

Every entity inherits from :class:`Entity` which provides:

* a stable ``id`` (UUID4) used both as the local primary key and as
  the suffix of the remote record name
* a timezone-aware ``last_edited`` timestamp
* ``validate_assignment`` so UI collaborators and the sync decoder
  can mutate fields in place and still get coercion/validation
* base64 JSON encoding for binary fields (photos) in the store file

:class:`EntityKind` names the five entity kinds and knows their
remote record type names.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from purusdrive._constants import FIELD_PREFIX


def utcnow() -> datetime:
    return datetime.now(UTC)


class EntityKind(StrEnum):
    VEHICLE = "Vehicle"
    TRAILER = "Trailer"
    DRIVE_LOG = "DriveLog"
    CHECKLIST = "Checklist"
    CHECKLIST_ITEM = "ChecklistItem"

    @property
    def record_type(self) -> str:
        """Remote record type name, e.g. ``CD_Vehicle``."""
        return f"{FIELD_PREFIX}{self.value}"

    @classmethod
    def from_record_type(cls, record_type: str) -> EntityKind:
        if not record_type.startswith(FIELD_PREFIX):
            raise ValueError(f"not a known record type: {record_type!r}")
        return cls(record_type[len(FIELD_PREFIX) :])


class Entity(BaseModel):
    """Base for the five locally persisted entity kinds."""

    kind: ClassVar[EntityKind]

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    last_edited: datetime = Field(default_factory=utcnow)

    @field_validator("last_edited")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def touch(self) -> None:
        """Mark the entity as edited now."""
        self.last_edited = utcnow()
