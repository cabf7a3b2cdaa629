"""Application bootstrap wiring store, preferences, migration and sync."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from purusdrive.config import SyncConfig
from purusdrive.exceptions import PurusError
from purusdrive.export import ExportFormat, ExportResult, ExportScope, export_data
from purusdrive.migration import run_ownership_migration_if_needed
from purusdrive.preferences import Preferences, StorageMode
from purusdrive.remote.base import RemoteRecordService
from purusdrive.remote.cloud import CloudRecordService
from purusdrive.store import EntityStore, FileBackend, open_entity_store
from purusdrive.sync.orchestrator import SyncOrchestrator
from purusdrive.sync.progress import MigrationProgress
from purusdrive.sync.transition import StorageModeTransitionManager

_logger = logging.getLogger(__name__)


class PurusDriveApp:
    """Local-first store with optional cloud sync.

    Usage::

        async with PurusDriveApp(SyncConfig.from_env()) as app:
            await app.on_launch()
            app.store.add(Vehicle(brand_model="VW T6", plate="B-PD 123"))
            app.store.save()
            await app.on_foreground()

    Opening the app runs the local bootstrap synchronously: fresh
    install detection, opening the store (falling back to memory), and
    the one-time checklist ownership migration.  Network resources are
    only created when entering the async context.
    """

    def __init__(
        self,
        config: SyncConfig,
        *,
        remote: RemoteRecordService | None = None,
        session: aiohttp.ClientSession | None = None,
        progress: MigrationProgress | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._remote = remote
        self._progress = progress or MigrationProgress(
            success_delay=config.success_display_delay,
            failure_delay=config.failure_display_delay,
        )
        self._orchestrator: SyncOrchestrator | None = None
        self._transitions: StorageModeTransitionManager | None = None

        self._preferences = Preferences(config.preferences_path)
        if not config.store_path.exists():
            # No local data: whatever mode is remembered belongs to an old install.
            self._preferences.reset_storage_mode()

        self._store = open_entity_store(config.store_path)
        run_ownership_migration_if_needed(self._store, self._preferences)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PurusDriveApp:
        if self._remote is None and self._config.api_token:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._remote = CloudRecordService(self._config, self._http_session)
        if self._remote is not None:
            self._orchestrator = SyncOrchestrator(self._store, self._remote)
            self._transitions = StorageModeTransitionManager(
                self._orchestrator,
                self._preferences,
                progress=self._progress,
                timeout=self._config.transition_timeout,
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transitions = None
        self._orchestrator = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def progress(self) -> MigrationProgress:
        return self._progress

    @property
    def storage_mode(self) -> StorageMode:
        return self._preferences.storage_mode

    @property
    def cloud_available(self) -> bool:
        return self._transitions is not None

    @property
    def init_error(self) -> str | None:
        """Diagnostic message when the store fell back to memory."""
        return self._store.fallback_reason

    def _require_orchestrator(self) -> SyncOrchestrator:
        if self._orchestrator is None:
            raise PurusError("Cloud sync not available. Configure an API token and use 'async with PurusDriveApp(...)'")
        return self._orchestrator

    @property
    def orchestrator(self) -> SyncOrchestrator:
        return self._require_orchestrator()

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def on_launch(self) -> bool:
        """Run a pending storage transition, or sync when synced."""
        if self._transitions is None:
            if self.storage_mode is StorageMode.SYNCED:
                _logger.warning("Storage mode is synced but no cloud service is configured")
            return False
        return await self._transitions.on_launch()

    async def on_foreground(self) -> bool:
        """Background sync when the app becomes active."""
        if self._transitions is None:
            return False
        return await self._transitions.sync_if_enabled()

    async def set_storage_mode(self, mode: StorageMode) -> bool:
        """Switch storage mode; refuses synced when no cloud is configured."""
        mode = StorageMode(mode)
        if self._transitions is None:
            if mode is StorageMode.SYNCED:
                _logger.warning("Cloud not available, keeping local storage")
                self._preferences.storage_mode = StorageMode.LOCAL
                return False
            self._preferences.storage_mode = mode
            self._preferences.last_known_storage_mode = mode
            return True
        return await self._transitions.set_storage_mode(mode)

    def export(self, scope: ExportScope | str = ExportScope.ALL, fmt: ExportFormat | str = ExportFormat.JSON) -> ExportResult:
        return export_data(self._store, ExportScope(scope), ExportFormat(fmt))

    def reset_local_database(self) -> None:
        """Delete all local data and the store file; remote data is untouched."""
        self._store.destroy()
        if self._store.fallback_reason is not None:
            # The unreadable file is not owned by the fallback backend.
            backend = FileBackend(self._config.store_path)
            backend.destroy()
            self._store.reattach(backend)
        _logger.info("Local database reset")
