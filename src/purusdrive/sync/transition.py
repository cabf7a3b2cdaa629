"""Storage mode switching between local-only and synced.

When the chosen :class:`~purusdrive.preferences.StorageMode` differs
from the mode the last completed transition ran for, a one-time
migration runs with visible progress:

* local -> synced: push everything, then a full sync.
* synced -> local: fetch everything first (the device may never have
  seen some remote data), then delete all remote records.

A failed or timed-out transition is reported through
:class:`MigrationProgress`.  The chosen mode is not rolled back and the
last-known mode is not advanced, so the next launch tries again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable

from purusdrive._constants import INITIAL_CLOUD_PUSH_MIGRATION
from purusdrive.exceptions import PurusError, PurusRemoteError, PurusTransitionError
from purusdrive.preferences import Preferences, StorageMode
from purusdrive.sync.orchestrator import SyncOrchestrator
from purusdrive.sync.progress import MigrationProgress

_logger = logging.getLogger(__name__)


def describe_error(exc: BaseException) -> str:
    """Log-friendly description that tells permanent remote errors apart."""
    if isinstance(exc, PurusRemoteError):
        kind = "permanent" if exc.permanent else "transient"
        return f"{kind} remote error ({exc.code or 'unknown'}): {exc}"
    return f"{type(exc).__name__}: {exc}"


class StorageModeTransitionManager:
    """Detects storage mode changes and runs the matching migration."""

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        preferences: Preferences,
        *,
        progress: MigrationProgress | None = None,
        timeout: float | None = 120.0,
    ) -> None:
        self._orchestrator = orchestrator
        self._preferences = preferences
        self._progress = progress if progress is not None else MigrationProgress()
        self._timeout = timeout if timeout else None

    @property
    def progress(self) -> MigrationProgress:
        return self._progress

    def pending_transition(self) -> tuple[StorageMode, StorageMode] | None:
        """``(previous, chosen)`` when a transition still has to run."""
        chosen = self._preferences.storage_mode
        previous = self._preferences.last_known_storage_mode or StorageMode.LOCAL
        if chosen == previous:
            return None
        return previous, chosen

    async def set_storage_mode(self, mode: StorageMode) -> bool:
        """Persist the user's choice and run the transition it requires."""
        self._preferences.storage_mode = StorageMode(mode)
        return await self.apply_pending()

    async def apply_pending(self) -> bool:
        """Run the pending transition, if any.  Returns ``False`` on failure."""
        pending = self.pending_transition()
        if pending is None:
            if self._preferences.last_known_storage_mode is None:
                self._preferences.last_known_storage_mode = self._preferences.storage_mode
            return True

        previous, chosen = pending
        if chosen is StorageMode.SYNCED:
            title, steps = "Moving data to the cloud", self._to_synced()
        else:
            title, steps = "Moving data to this device", self._to_local()

        _logger.info("Storage mode transition %s -> %s started", previous, chosen)
        self._progress.start(title)
        error: PurusError
        try:
            await self._with_timeout(steps)
        except TimeoutError:
            error = PurusTransitionError(f"Storage mode transition timed out after {self._timeout:g}s")
        except PurusError as exc:
            error = exc
        except Exception as exc:
            self._progress.fail(str(exc))
            raise
        else:
            self._preferences.last_known_storage_mode = chosen
            _logger.info("Storage mode transition %s -> %s completed", previous, chosen)
            self._progress.succeed("Done")
            return True

        _logger.warning("Storage mode transition %s -> %s failed: %s", previous, chosen, describe_error(error))
        self._progress.fail(str(error))
        return False

    async def _with_timeout(self, steps: Awaitable[None]) -> None:
        if self._timeout is None:
            await steps
        else:
            await asyncio.wait_for(steps, timeout=self._timeout)

    async def _to_synced(self) -> None:
        orchestrator = self._orchestrator
        self._progress.update("Uploading local data")
        await orchestrator.ensure_zone()
        await orchestrator.push_all()
        self._preferences.mark_applied(INITIAL_CLOUD_PUSH_MIGRATION)
        self._progress.update("Synchronizing")
        await orchestrator.full_sync()

    async def _to_local(self) -> None:
        orchestrator = self._orchestrator
        self._progress.update("Downloading cloud data")
        await orchestrator.ensure_zone()
        await orchestrator.fetch_all()
        self._progress.update("Removing cloud data")
        await orchestrator.delete_all_remote()

    async def sync_if_enabled(self) -> bool:
        """Silent background sync for launch/foreground triggers.

        The first time sync runs at all, every local entity is pushed
        once before the regular full sync.  Errors are logged and
        swallowed; the next trigger simply tries again.
        """
        if self._preferences.storage_mode is not StorageMode.SYNCED:
            return False
        orchestrator = self._orchestrator
        try:
            if not self._preferences.is_applied(INITIAL_CLOUD_PUSH_MIGRATION):
                await orchestrator.ensure_zone()
                await orchestrator.push_all()
                self._preferences.mark_applied(INITIAL_CLOUD_PUSH_MIGRATION)
            await orchestrator.full_sync()
        except PurusError as exc:
            _logger.warning("Background sync failed: %s", describe_error(exc))
            return False
        return True

    async def on_launch(self) -> bool:
        """Run a pending transition, or the regular background sync."""
        if self.pending_transition() is not None:
            return await self.apply_pending()
        if self._preferences.last_known_storage_mode is None:
            self._preferences.last_known_storage_mode = self._preferences.storage_mode
        return await self.sync_if_enabled()
