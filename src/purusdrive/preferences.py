"""Persisted user preferences and one-time migration checkpoints.

Holds the storage mode the user chose, the mode the last completed
transition ran for, and the set of migrations already applied.  The
file is tiny and rewritten as a whole on every change.
"""

from __future__ import annotations

import logging
import os
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from purusdrive.exceptions import PurusStorageError

_logger = logging.getLogger(__name__)


class StorageMode(StrEnum):
    LOCAL = "local"
    SYNCED = "synced"


class PreferencesData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    storage_mode: StorageMode | None = None
    last_known_storage_mode: StorageMode | None = None
    migrations_applied: set[str] = Field(default_factory=set)


class Preferences:
    """Key-value preference state backed by a JSON file (or memory only)."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._data = self._load()

    def _load(self) -> PreferencesData:
        if self._path is None or not self._path.exists():
            return PreferencesData()
        try:
            return PreferencesData.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            # Unreadable preferences degrade to defaults rather than blocking startup.
            _logger.warning("Ignoring unreadable preferences at %s: %s", self._path, exc)
            return PreferencesData()

    def _persist(self) -> None:
        if self._path is None:
            return
        tmp_path = self._path.with_name(f".{self._path.name}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(self._data.model_dump_json(), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise PurusStorageError(f"Could not write preferences: {exc}", path=str(self._path)) from exc

    # ------------------------------------------------------------------
    # Storage mode
    # ------------------------------------------------------------------

    @property
    def storage_mode(self) -> StorageMode:
        return self._data.storage_mode or StorageMode.LOCAL

    @storage_mode.setter
    def storage_mode(self, mode: StorageMode) -> None:
        self._data.storage_mode = StorageMode(mode)
        self._persist()

    @property
    def last_known_storage_mode(self) -> StorageMode | None:
        return self._data.last_known_storage_mode

    @last_known_storage_mode.setter
    def last_known_storage_mode(self, mode: StorageMode | None) -> None:
        self._data.last_known_storage_mode = StorageMode(mode) if mode is not None else None
        self._persist()

    def reset_storage_mode(self) -> None:
        """Forget the chosen and last-known storage mode (fresh install)."""
        self._data.storage_mode = None
        self._data.last_known_storage_mode = None
        self._persist()

    # ------------------------------------------------------------------
    # Migration checkpoints
    # ------------------------------------------------------------------

    @property
    def migrations_applied(self) -> frozenset[str]:
        return frozenset(self._data.migrations_applied)

    def is_applied(self, migration_id: str) -> bool:
        return migration_id in self._data.migrations_applied

    def mark_applied(self, migration_id: str) -> None:
        if migration_id in self._data.migrations_applied:
            return
        self._data.migrations_applied.add(migration_id)
        try:
            self._persist()
        except PurusStorageError:
            # Only a persisted checkpoint counts as applied.
            self._data.migrations_applied.discard(migration_id)
            raise
