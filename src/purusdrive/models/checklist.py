"""Checklist and checklist item models."""

from __future__ import annotations

import uuid
from enum import StrEnum
from typing import ClassVar

from purusdrive.models._base import Entity, EntityKind
from purusdrive.models.vehicle import VehicleType


class ChecklistItemState(StrEnum):
    NOT_SELECTED = "notSelected"
    SELECTED = "selected"
    NOT_APPLICABLE = "notApplicable"
    NOT_OK = "notOk"

    def cycled(self) -> ChecklistItemState:
        """Next state in the fixed ring notSelected -> selected -> notApplicable -> notOk."""
        ring = list(ChecklistItemState)
        return ring[(ring.index(self) + 1) % len(ring)]


class Checklist(Entity):
    """An inspection checklist.

    Owned by at most one of ``vehicle_id`` / ``trailer_id``.  A checklist
    with neither is the legacy "unowned" state fixed up by
    :mod:`purusdrive.migration`.  ``vehicle_type`` is a denormalized copy
    of the owner's type.
    """

    kind: ClassVar[EntityKind] = EntityKind.CHECKLIST

    vehicle_type: VehicleType = VehicleType.CAR
    title: str = ""
    vehicle_id: uuid.UUID | None = None
    trailer_id: uuid.UUID | None = None

    @property
    def is_unowned(self) -> bool:
        return self.vehicle_id is None and self.trailer_id is None


class ChecklistItem(Entity):
    kind: ClassVar[EntityKind] = EntityKind.CHECKLIST_ITEM

    section: str = ""
    title: str = ""
    state: ChecklistItemState = ChecklistItemState.NOT_SELECTED
    note: str | None = None
    checklist_id: uuid.UUID | None = None

    def cycle_state(self) -> ChecklistItemState:
        self.state = self.state.cycled()
        return self.state
