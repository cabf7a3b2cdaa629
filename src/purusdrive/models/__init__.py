"""Data models for purusdrive entities and remote records."""

from purusdrive.models._base import Entity, EntityKind, utcnow
from purusdrive.models.checklist import Checklist, ChecklistItem, ChecklistItemState
from purusdrive.models.drive_log import DriveLog
from purusdrive.models.record import (
    Record,
    RecordReference,
    ReferenceAction,
    entity_id_from_record_name,
    record_name_for,
)
from purusdrive.models.vehicle import Trailer, Vehicle, VehicleType

ENTITY_CLASSES: dict[EntityKind, type[Entity]] = {
    EntityKind.VEHICLE: Vehicle,
    EntityKind.TRAILER: Trailer,
    EntityKind.DRIVE_LOG: DriveLog,
    EntityKind.CHECKLIST: Checklist,
    EntityKind.CHECKLIST_ITEM: ChecklistItem,
}

__all__ = [
    "Checklist",
    "ChecklistItem",
    "ChecklistItemState",
    "DriveLog",
    "ENTITY_CLASSES",
    "Entity",
    "EntityKind",
    "Record",
    "RecordReference",
    "ReferenceAction",
    "Trailer",
    "Vehicle",
    "VehicleType",
    "entity_id_from_record_name",
    "record_name_for",
    "utcnow",
]
