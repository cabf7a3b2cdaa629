from __future__ import annotations

import uuid
from datetime import UTC, datetime

import pytest

from purusdrive.models import (
    ChecklistItem,
    ChecklistItemState,
    DriveLog,
    EntityKind,
    Vehicle,
    VehicleType,
    entity_id_from_record_name,
    record_name_for,
)


def test_checklist_item_state_cycles_through_ring() -> None:
    item = ChecklistItem(title="Tyres")
    seen = [item.state]
    for _ in range(4):
        seen.append(item.cycle_state())

    assert seen == [
        ChecklistItemState.NOT_SELECTED,
        ChecklistItemState.SELECTED,
        ChecklistItemState.NOT_APPLICABLE,
        ChecklistItemState.NOT_OK,
        ChecklistItemState.NOT_SELECTED,
    ]


def test_record_name_uses_uppercase_uuid() -> None:
    entity_id = uuid.UUID("6f1c1d0e-8f1b-4b7a-9a63-0c2a4c1f7e11")
    name = record_name_for(EntityKind.VEHICLE.record_type, entity_id)

    assert name == "CD_Vehicle_6F1C1D0E-8F1B-4B7A-9A63-0C2A4C1F7E11"
    assert entity_id_from_record_name(name, "CD_Vehicle") == entity_id


@pytest.mark.parametrize(
    "record_name",
    ["CD_Trailer_6F1C1D0E-8F1B-4B7A-9A63-0C2A4C1F7E11", "CD_Vehicle_not-a-uuid", ""],
)
def test_entity_id_from_record_name_rejects_foreign_names(record_name: str) -> None:
    assert entity_id_from_record_name(record_name, "CD_Vehicle") is None


def test_entity_kind_record_type_round_trip() -> None:
    for kind in EntityKind:
        assert EntityKind.from_record_type(kind.record_type) is kind
    with pytest.raises(ValueError):
        EntityKind.from_record_type("Vehicle")


def test_naive_last_edited_is_treated_as_utc() -> None:
    vehicle = Vehicle(last_edited=datetime(2026, 1, 1, 12, 0))
    assert vehicle.last_edited.tzinfo is UTC


def test_assignment_is_validated() -> None:
    vehicle = Vehicle()
    vehicle.type = "van"  # type: ignore[assignment]
    assert vehicle.type is VehicleType.VAN
    assert VehicleType.MOTORBIKE.display_name == "Motorbike"


def test_drive_log_distance() -> None:
    log = DriveLog(km_start=12_000, km_end=12_345)
    assert log.distance_km == 345
