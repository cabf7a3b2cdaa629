"""Persistence backends for the entity store.

The store file is a single JSON document (:class:`StoreSnapshot`).
Writes go to a temporary sibling file which is then renamed over the
target, so a crash mid-write never leaves a truncated store behind.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from purusdrive.exceptions import PurusStorageError
from purusdrive.models import Checklist, ChecklistItem, DriveLog, Trailer, Vehicle

_logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class StoreSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: int = SNAPSHOT_VERSION
    vehicles: list[Vehicle] = Field(default_factory=list)
    trailers: list[Trailer] = Field(default_factory=list)
    drive_logs: list[DriveLog] = Field(default_factory=list)
    checklists: list[Checklist] = Field(default_factory=list)
    checklist_items: list[ChecklistItem] = Field(default_factory=list)


class StoreBackend(Protocol):
    """Where a store snapshot is loaded from and saved to."""

    @property
    def is_persistent(self) -> bool: ...

    def load(self) -> StoreSnapshot: ...

    def save(self, snapshot: StoreSnapshot) -> None: ...

    def destroy(self) -> None: ...


class MemoryBackend:
    """Keeps the last saved snapshot in memory only (lost on restart)."""

    def __init__(self) -> None:
        self._snapshot = StoreSnapshot()

    @property
    def is_persistent(self) -> bool:
        return False

    def load(self) -> StoreSnapshot:
        return self._snapshot.model_copy(deep=True)

    def save(self, snapshot: StoreSnapshot) -> None:
        self._snapshot = snapshot.model_copy(deep=True)

    def destroy(self) -> None:
        self._snapshot = StoreSnapshot()


class FileBackend:
    """JSON file backed store."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_persistent(self) -> bool:
        return True

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> StoreSnapshot:
        """Load the snapshot; a missing file is an empty store."""
        if not self._path.exists():
            return StoreSnapshot()
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PurusStorageError(f"Could not read store file: {exc}", path=str(self._path)) from exc
        try:
            snapshot = StoreSnapshot.model_validate_json(text)
        except ValidationError as exc:
            raise PurusStorageError(
                f"Store file is corrupt: {exc.error_count()} validation error(s)",
                path=str(self._path),
            ) from exc
        if snapshot.version > SNAPSHOT_VERSION:
            raise PurusStorageError(
                f"Store file version {snapshot.version} is newer than supported {SNAPSHOT_VERSION}",
                path=str(self._path),
            )
        return snapshot

    def save(self, snapshot: StoreSnapshot) -> None:
        tmp_path = self._path.with_name(f".{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(snapshot.model_dump_json(), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise PurusStorageError(f"Could not write store file: {exc}", path=str(self._path)) from exc
        _logger.debug("Saved store to %s", self._path)

    def destroy(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise PurusStorageError(f"Could not delete store file: {exc}", path=str(self._path)) from exc
