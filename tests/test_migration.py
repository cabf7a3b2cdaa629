from __future__ import annotations

from datetime import UTC, datetime

from purusdrive._constants import CHECKLIST_OWNERSHIP_MIGRATION
from purusdrive.exceptions import PurusStorageError
from purusdrive.migration import assign_unowned_checklists, run_ownership_migration_if_needed
from purusdrive.models import Checklist, Trailer, Vehicle, VehicleType
from purusdrive.preferences import Preferences
from purusdrive.store import EntityStore, StoreSnapshot


def _dt(hour: int) -> datetime:
    return datetime(2026, 1, 1, hour, tzinfo=UTC)


class _FailingBackend:
    @property
    def is_persistent(self) -> bool:
        return True

    def load(self) -> StoreSnapshot:
        return StoreSnapshot()

    def save(self, snapshot: StoreSnapshot) -> None:
        raise PurusStorageError("disk full", path="/dev/full")

    def destroy(self) -> None:
        return None


def test_unowned_checklist_goes_to_most_recently_edited_vehicle_of_its_type() -> None:
    store = EntityStore()
    newest = store.add(Vehicle(type=VehicleType.CAR, plate="V1", last_edited=_dt(12)))
    store.add(Vehicle(type=VehicleType.CAR, plate="V2", last_edited=_dt(8)))
    store.add(Vehicle(type=VehicleType.VAN, plate="V3", last_edited=_dt(20)))
    checklist = store.add(Checklist(vehicle_type=VehicleType.CAR, title="Legacy"))

    assigned = assign_unowned_checklists(store)

    assert assigned == [checklist]
    assert checklist.vehicle_id == newest.id
    assert checklist.trailer_id is None


def test_trailer_checklist_goes_to_newest_trailer() -> None:
    store = EntityStore()
    store.add(Trailer(plate="T-old", last_edited=_dt(1)))
    newest = store.add(Trailer(plate="T-new", last_edited=_dt(2)))
    store.add(Vehicle(type=VehicleType.TRAILER, last_edited=_dt(3)))
    checklist = store.add(Checklist(vehicle_type=VehicleType.TRAILER))

    assign_unowned_checklists(store)

    assert checklist.trailer_id == newest.id
    assert checklist.vehicle_id is None


def test_checklist_without_matching_owner_stays_unowned() -> None:
    store = EntityStore()
    store.add(Vehicle(type=VehicleType.CAR))
    boat_checklist = store.add(Checklist(vehicle_type=VehicleType.BOAT))
    owned = store.add(Checklist(vehicle_type=VehicleType.CAR, vehicle_id=store.vehicles()[0].id))

    assert assign_unowned_checklists(store) == []
    assert boat_checklist.is_unowned
    assert owned.vehicle_id == store.vehicles()[0].id


def test_migration_runs_once() -> None:
    store = EntityStore()
    vehicle = store.add(Vehicle(type=VehicleType.CAR))
    store.add(Checklist(vehicle_type=VehicleType.CAR))
    prefs = Preferences()

    assert run_ownership_migration_if_needed(store, prefs) == 1
    assert prefs.is_applied(CHECKLIST_OWNERSHIP_MIGRATION)
    assert store.checklists()[0].vehicle_id == vehicle.id

    # Legacy data arriving later is not touched by the already applied migration.
    late = store.add(Checklist(vehicle_type=VehicleType.CAR))
    assert run_ownership_migration_if_needed(store, prefs) is None
    assert late.is_unowned


def test_migration_without_unowned_checklists_is_recorded() -> None:
    prefs = Preferences()
    assert run_ownership_migration_if_needed(EntityStore(), prefs) == 0
    assert prefs.is_applied(CHECKLIST_OWNERSHIP_MIGRATION)


def test_failed_save_does_not_record_migration() -> None:
    store = EntityStore(_FailingBackend())
    store.add(Vehicle(type=VehicleType.CAR))
    store.add(Checklist(vehicle_type=VehicleType.CAR))
    prefs = Preferences()

    assert run_ownership_migration_if_needed(store, prefs) is None
    assert not prefs.is_applied(CHECKLIST_OWNERSHIP_MIGRATION)


def test_memory_fallback_store_is_not_migrated() -> None:
    store = EntityStore(fallback_reason="Local storage failed, using in-memory storage.")
    store.add(Vehicle(type=VehicleType.CAR))
    checklist = store.add(Checklist(vehicle_type=VehicleType.CAR))
    prefs = Preferences()

    assert run_ownership_migration_if_needed(store, prefs) is None
    assert not prefs.is_applied(CHECKLIST_OWNERSHIP_MIGRATION)
    assert checklist.is_unowned
