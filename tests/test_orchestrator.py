from __future__ import annotations

import asyncio

import pytest

from purusdrive.exceptions import PurusRemoteApiError
from purusdrive.migration import run_ownership_migration_if_needed
from purusdrive.models import Checklist, ChecklistItem, DriveLog, EntityKind, Trailer, Vehicle, VehicleType
from purusdrive.preferences import Preferences
from purusdrive.remote import InMemoryRecordService
from purusdrive.store import EntityStore
from purusdrive.sync import DELETE_ORDER, RecordCodec, SyncOrchestrator


def _populate(store: EntityStore) -> None:
    trailer = store.add(Trailer(brand_model="Boeckmann", plate="B-TR 1"))
    vehicle = store.add(Vehicle(type=VehicleType.VAN, brand_model="VW T6", plate="B-PD 123"))
    store.link_trailer(vehicle, trailer)
    checklist = store.add(Checklist(vehicle_type=VehicleType.VAN, title="Departure", vehicle_id=vehicle.id))
    store.add_checklist_item(checklist, ChecklistItem(section="Outside", title="Lights"))
    store.add(DriveLog(vehicle_id=vehicle.id, reason="Work", km_start=10, km_end=55, checklist_id=checklist.id))


@pytest.mark.asyncio
async def test_push_then_fetch_on_second_device_rebuilds_graph() -> None:
    remote = InMemoryRecordService()
    device_a = EntityStore()
    _populate(device_a)
    await SyncOrchestrator(device_a, remote).full_sync()

    device_b = EntityStore()
    report = await SyncOrchestrator(device_b, remote).fetch_all()

    assert report.created == 5
    assert report.unresolved == 0
    assert report.fetched[EntityKind.VEHICLE] == 1
    vehicle = device_b.vehicles()[0]
    trailer = device_b.trailers()[0]
    # Vehicles are fetched before trailers, so this link comes from the second resolution pass.
    assert vehicle.trailer_id == trailer.id
    log = device_b.drive_logs()[0]
    assert log.vehicle_id == vehicle.id
    checklist = device_b.checklists()[0]
    assert log.checklist_id == checklist.id
    assert [i.title for i in device_b.items_for(checklist)] == ["Lights"]


@pytest.mark.asyncio
async def test_push_is_idempotent() -> None:
    remote = InMemoryRecordService(zone_exists=True)
    store = EntityStore()
    _populate(store)
    orchestrator = SyncOrchestrator(store, remote)

    first = await orchestrator.push_all()
    second = await orchestrator.push_all()

    assert first.total == second.total == 5
    assert len(remote.records()) == 5


@pytest.mark.asyncio
async def test_fetch_is_idempotent() -> None:
    remote = InMemoryRecordService(zone_exists=True)
    source = EntityStore()
    _populate(source)
    await SyncOrchestrator(source, remote).push_all()

    store = EntityStore()
    orchestrator = SyncOrchestrator(store, remote)
    await orchestrator.fetch_all()
    again = await orchestrator.fetch_all()

    assert again.created == 0
    assert again.updated == 5
    assert store.count() == 5


@pytest.mark.asyncio
async def test_dangling_reference_stays_empty() -> None:
    remote = InMemoryRecordService(zone_exists=True)
    source = EntityStore()
    vehicle = source.add(Vehicle())
    checklist = source.add(Checklist(vehicle_id=vehicle.id))
    await remote.save(RecordCodec(source).encode(checklist))

    store = EntityStore()
    report = await SyncOrchestrator(store, remote).fetch_all()

    assert report.unresolved == 1
    assert store.checklists()[0].vehicle_id is None


@pytest.mark.asyncio
async def test_fetch_reads_every_page_in_creation_order() -> None:
    remote = InMemoryRecordService(page_size=2, zone_exists=True)
    source = EntityStore()
    for n in range(5):
        source.add(Vehicle(plate=f"P-{n}"))
    await SyncOrchestrator(source, remote).push_all()

    store = EntityStore()
    await SyncOrchestrator(store, remote).fetch_all()

    assert [v.plate for v in store.vehicles()] == [f"P-{n}" for n in range(5)]
    vehicle_queries = [c for c in remote.calls if c == ("query", "CD_Vehicle")]
    assert len(vehicle_queries) == 3


@pytest.mark.asyncio
async def test_delete_all_remote_runs_children_first() -> None:
    remote = InMemoryRecordService(zone_exists=True)
    store = EntityStore()
    _populate(store)
    orchestrator = SyncOrchestrator(store, remote)
    await orchestrator.push_all()
    remote.calls.clear()

    await orchestrator.delete_all_remote()

    deletes = [subject for op, subject in remote.calls if op == "delete"]
    assert deletes == [kind.record_type for kind in DELETE_ORDER]
    assert remote.records() == []
    # Local data is untouched.
    assert store.count() == 5


@pytest.mark.asyncio
async def test_save_failure_aborts_push() -> None:
    remote = InMemoryRecordService(zone_exists=True)
    store = EntityStore()
    _populate(store)
    remote.fail_next("save")

    with pytest.raises(PurusRemoteApiError) as exc_info:
        await SyncOrchestrator(store, remote).push_all()

    assert exc_info.value.code == "SERVICE_UNAVAILABLE"
    assert remote.records() == []


@pytest.mark.asyncio
async def test_missing_zone_surfaces_as_remote_error() -> None:
    remote = InMemoryRecordService()
    with pytest.raises(PurusRemoteApiError) as exc_info:
        await SyncOrchestrator(EntityStore(), remote).fetch_all()
    assert exc_info.value.code == "ZONE_NOT_FOUND"


@pytest.mark.asyncio
async def test_overlapping_full_syncs_do_not_duplicate() -> None:
    remote = InMemoryRecordService(latency=0.001)
    store = EntityStore()
    _populate(store)
    orchestrator = SyncOrchestrator(store, remote)

    await asyncio.gather(orchestrator.full_sync(), orchestrator.full_sync())

    assert store.count() == 5
    assert len(remote.records()) == 5
    names = [r.record_name for r in remote.records()]
    assert len(set(names)) == len(names)


@pytest.mark.asyncio
async def test_migrated_checklist_owner_survives_next_sync() -> None:
    remote = InMemoryRecordService()
    store = EntityStore()
    vehicle = store.add(Vehicle(type=VehicleType.CAR))
    checklist = store.add(Checklist(vehicle_type=VehicleType.CAR, title="Legacy"))
    orchestrator = SyncOrchestrator(store, remote)
    await orchestrator.full_sync()

    assert run_ownership_migration_if_needed(store, Preferences()) == 1
    await orchestrator.full_sync()

    assert checklist.vehicle_id == vehicle.id
    record = remote.get(RecordCodec(store).encode(checklist).record_name)
    assert record is not None
    assert record.get("CD_vehicle").record_name.endswith(str(vehicle.id).upper())


@pytest.mark.asyncio
async def test_link_made_after_sync_is_pushed_not_reverted() -> None:
    remote = InMemoryRecordService()
    store = EntityStore()
    vehicle = store.add(Vehicle())
    log = store.add(DriveLog(reason="Work"))
    orchestrator = SyncOrchestrator(store, remote)
    await orchestrator.full_sync()

    log.vehicle_id = vehicle.id
    await orchestrator.full_sync()

    assert log.vehicle_id == vehicle.id
    device_b = EntityStore()
    await SyncOrchestrator(device_b, remote).fetch_all()
    assert device_b.get(DriveLog, log.id).vehicle_id == vehicle.id
