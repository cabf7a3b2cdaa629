from __future__ import annotations

from pathlib import Path

import pytest

from purusdrive._constants import CHECKLIST_OWNERSHIP_MIGRATION
from purusdrive.app import PurusDriveApp
from purusdrive.config import SyncConfig
from purusdrive.models import Checklist, Vehicle, VehicleType
from purusdrive.preferences import Preferences, StorageMode
from purusdrive.remote import InMemoryRecordService
from purusdrive.store import open_entity_store


def _config(tmp_path: Path) -> SyncConfig:
    return SyncConfig(data_dir=tmp_path, success_display_delay=0.0, failure_display_delay=0.0)


def _write_store(config: SyncConfig) -> Vehicle:
    store = open_entity_store(config.store_path)
    vehicle = store.add(Vehicle(type=VehicleType.CAR, plate="B-PD 1"))
    store.add(Checklist(vehicle_type=VehicleType.CAR, title="Legacy"))
    store.save()
    return vehicle


def test_fresh_install_forgets_remembered_storage_mode(tmp_path: Path) -> None:
    config = _config(tmp_path)
    prefs = Preferences(config.preferences_path)
    prefs.storage_mode = StorageMode.SYNCED
    prefs.last_known_storage_mode = StorageMode.SYNCED

    app = PurusDriveApp(config)

    assert app.storage_mode is StorageMode.LOCAL
    assert app.preferences.last_known_storage_mode is None


def test_bootstrap_keeps_mode_and_migrates_legacy_checklists(tmp_path: Path) -> None:
    config = _config(tmp_path)
    vehicle = _write_store(config)
    prefs = Preferences(config.preferences_path)
    prefs.storage_mode = StorageMode.SYNCED

    app = PurusDriveApp(config)

    assert app.storage_mode is StorageMode.SYNCED
    assert app.store.checklists()[0].vehicle_id == vehicle.id
    assert Preferences(config.preferences_path).is_applied(CHECKLIST_OWNERSHIP_MIGRATION)
    assert open_entity_store(config.store_path).checklists()[0].vehicle_id == vehicle.id


def test_corrupt_store_reports_init_error(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.store_path.write_text("garbage", encoding="utf-8")

    app = PurusDriveApp(config)

    assert app.init_error is not None
    assert not app.store.is_persistent


@pytest.mark.asyncio
async def test_switch_to_synced_and_back(tmp_path: Path) -> None:
    config = _config(tmp_path)
    _write_store(config)
    remote = InMemoryRecordService()

    async with PurusDriveApp(config, remote=remote) as app:
        assert app.cloud_available
        assert await app.on_launch() is False

        assert await app.set_storage_mode(StorageMode.SYNCED)
        assert len(remote.records()) == app.store.count() == 2

        app.store.add(Vehicle(plate="B-PD 2"))
        assert await app.on_foreground()
        assert len(remote.records()) == 3

        assert await app.set_storage_mode(StorageMode.LOCAL)
        assert remote.records() == []
        assert app.store.count() == 3
        await app.progress.wait_idle()


@pytest.mark.asyncio
async def test_without_cloud_synced_mode_is_refused(tmp_path: Path) -> None:
    async with PurusDriveApp(_config(tmp_path)) as app:
        assert not app.cloud_available
        assert not await app.set_storage_mode(StorageMode.SYNCED)
        assert app.storage_mode is StorageMode.LOCAL
        assert not await app.on_foreground()


def test_reset_local_database_deletes_store_file(tmp_path: Path) -> None:
    config = _config(tmp_path)
    _write_store(config)
    app = PurusDriveApp(config)

    app.reset_local_database()

    assert app.store.count() == 0
    assert not config.store_path.exists()


def test_export_uses_app_store(tmp_path: Path) -> None:
    config = _config(tmp_path)
    _write_store(config)

    result = PurusDriveApp(config).export("vehicles", "txt")

    assert result.file_name.startswith("purusdrive_export_vehicles_")
    assert b"B-PD 1" in result.data


def test_corrupt_store_defers_migration(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.store_path.write_text("{not json", encoding="utf-8")

    PurusDriveApp(config)

    assert not Preferences(config.preferences_path).is_applied(CHECKLIST_OWNERSHIP_MIGRATION)


def test_reset_after_corrupt_store_recovers_file_storage(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.store_path.write_text("{not json", encoding="utf-8")
    app = PurusDriveApp(config)
    assert app.init_error is not None

    app.reset_local_database()

    assert not config.store_path.exists()
    assert app.init_error is None
    assert app.store.is_persistent
    app.store.add(Vehicle(plate="B-PD 9"))
    app.store.save()

    reopened = PurusDriveApp(config)
    assert reopened.init_error is None
    assert [v.plate for v in reopened.store.vehicles()] == ["B-PD 9"]
