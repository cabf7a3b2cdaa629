"""Drive log model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import ClassVar

from pydantic import Field

from purusdrive.models._base import Entity, EntityKind, utcnow


class DriveLog(Entity):
    """A single trip.

    ``km_end >= km_start`` is only a hint for editors and is not
    enforced here.  ``vehicle_id`` may be ``None`` for legacy rows.
    """

    kind: ClassVar[EntityKind] = EntityKind.DRIVE_LOG

    vehicle_id: uuid.UUID | None = None
    date: datetime = Field(default_factory=utcnow)
    reason: str = ""
    km_start: int = 0
    km_end: int = 0
    notes: str = ""
    checklist_id: uuid.UUID | None = None

    @property
    def distance_km(self) -> int:
        return self.km_end - self.km_start
