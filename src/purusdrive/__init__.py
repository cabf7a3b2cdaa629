"""purusdrive - local-first vehicle, trailer and drive log store with cloud record sync."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("purusdrive")
except PackageNotFoundError:
    __version__ = "0+local"
from purusdrive.app import PurusDriveApp
from purusdrive.config import SyncConfig
from purusdrive.exceptions import (
    PurusConfigError,
    PurusError,
    PurusRemoteApiError,
    PurusRemoteError,
    PurusStorageError,
    PurusTransitionError,
    PurusTransportError,
)
from purusdrive.export import ExportFormat, ExportScope, export_data
from purusdrive.migration import run_ownership_migration_if_needed
from purusdrive.models import (
    Checklist,
    ChecklistItem,
    ChecklistItemState,
    DriveLog,
    EntityKind,
    Record,
    RecordReference,
    Trailer,
    Vehicle,
    VehicleType,
)
from purusdrive.preferences import Preferences, StorageMode
from purusdrive.remote import CloudRecordService, InMemoryRecordService, RemoteRecordService
from purusdrive.store import EntityStore, open_entity_store
from purusdrive.sync import (
    MigrationProgress,
    ProgressPhase,
    ProgressState,
    RecordCodec,
    StorageModeTransitionManager,
    SyncOrchestrator,
)

__all__ = [
    "__version__",
    "Checklist",
    "ChecklistItem",
    "ChecklistItemState",
    "CloudRecordService",
    "DriveLog",
    "EntityKind",
    "EntityStore",
    "ExportFormat",
    "ExportScope",
    "InMemoryRecordService",
    "MigrationProgress",
    "Preferences",
    "ProgressPhase",
    "ProgressState",
    "PurusConfigError",
    "PurusDriveApp",
    "PurusError",
    "PurusRemoteApiError",
    "PurusRemoteError",
    "PurusStorageError",
    "PurusTransitionError",
    "PurusTransportError",
    "Record",
    "RecordCodec",
    "RecordReference",
    "RemoteRecordService",
    "StorageMode",
    "StorageModeTransitionManager",
    "SyncConfig",
    "SyncOrchestrator",
    "Trailer",
    "Vehicle",
    "VehicleType",
    "export_data",
    "open_entity_store",
    "run_ownership_migration_if_needed",
]
