"""Local object graph of vehicles, trailers, drive logs and checklists.

This is the only shared mutable resource of the library.  It is confined
to the event loop thread: every mutation runs synchronously between two
suspension points, so no locking is needed.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import TypeVar

from purusdrive.exceptions import PurusStorageError
from purusdrive.models import (
    ENTITY_CLASSES,
    Checklist,
    ChecklistItem,
    DriveLog,
    Entity,
    EntityKind,
    Trailer,
    Vehicle,
)
from purusdrive.store.backend import FileBackend, MemoryBackend, StoreBackend, StoreSnapshot

_logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class EntityStore:
    """In-memory entity graph with an explicit ``save()`` to its backend."""

    def __init__(self, backend: StoreBackend | None = None, *, fallback_reason: str | None = None) -> None:
        self._backend: StoreBackend = backend if backend is not None else MemoryBackend()
        self._tables: dict[EntityKind, dict[uuid.UUID, Entity]] = {kind: {} for kind in EntityKind}
        self.fallback_reason = fallback_reason

    @classmethod
    def load(cls, backend: StoreBackend, *, fallback_reason: str | None = None) -> EntityStore:
        """Create a store populated from *backend*."""
        store = cls(backend, fallback_reason=fallback_reason)
        store._populate(backend.load())
        return store

    def _populate(self, snapshot: StoreSnapshot) -> None:
        groups: Iterable[Iterable[Entity]] = (
            snapshot.vehicles,
            snapshot.trailers,
            snapshot.drive_logs,
            snapshot.checklists,
            snapshot.checklist_items,
        )
        for group in groups:
            for entity in group:
                self._tables[entity.kind][entity.id] = entity

    @property
    def is_persistent(self) -> bool:
        return self._backend.is_persistent

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------

    def add(self, entity: E) -> E:
        """Insert *entity* (or replace the entity with the same id)."""
        self._tables[entity.kind][entity.id] = entity
        return entity

    def get(self, cls: type[E], entity_id: uuid.UUID | None) -> E | None:
        if entity_id is None:
            return None
        entity = self._tables[cls.kind].get(entity_id)
        return entity if isinstance(entity, cls) else None

    def get_kind(self, kind: EntityKind, entity_id: uuid.UUID | None) -> Entity | None:
        return self.get(ENTITY_CLASSES[kind], entity_id)

    def all(self, cls: type[E]) -> list[E]:
        """All entities of a kind, in insertion order."""
        return [e for e in self._tables[cls.kind].values() if isinstance(e, cls)]

    def all_kind(self, kind: EntityKind) -> list[Entity]:
        return list(self._tables[kind].values())

    def count(self, kind: EntityKind | None = None) -> int:
        if kind is not None:
            return len(self._tables[kind])
        return sum(len(table) for table in self._tables.values())

    def vehicles(self) -> list[Vehicle]:
        return self.all(Vehicle)

    def trailers(self) -> list[Trailer]:
        return self.all(Trailer)

    def drive_logs(self) -> list[DriveLog]:
        return self.all(DriveLog)

    def checklists(self) -> list[Checklist]:
        return self.all(Checklist)

    def checklist_items(self) -> list[ChecklistItem]:
        return self.all(ChecklistItem)

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def link_trailer(self, vehicle: Vehicle, trailer: Trailer | None) -> None:
        """Make *trailer* the trailer of *vehicle* (``None`` unlinks).

        Any other vehicle currently claiming *trailer* loses it, so a
        trailer has at most one towing vehicle at any time.
        """
        if trailer is not None:
            for other in self.vehicles():
                if other.id != vehicle.id and other.trailer_id == trailer.id:
                    other.trailer_id = None
        vehicle.trailer_id = trailer.id if trailer is not None else None

    def trailer_owner(self, trailer: Trailer) -> Vehicle | None:
        """Derived back-reference: the vehicle towing *trailer*."""
        for vehicle in self.vehicles():
            if vehicle.trailer_id == trailer.id:
                return vehicle
        return None

    def add_checklist_item(self, checklist: Checklist, item: ChecklistItem) -> ChecklistItem:
        item.checklist_id = checklist.id
        return self.add(item)

    def items_for(self, checklist: Checklist) -> list[ChecklistItem]:
        return [item for item in self.checklist_items() if item.checklist_id == checklist.id]

    def drive_logs_for(self, vehicle: Vehicle) -> list[DriveLog]:
        return [log for log in self.drive_logs() if log.vehicle_id == vehicle.id]

    def checklists_for(self, owner: Vehicle | Trailer) -> list[Checklist]:
        if isinstance(owner, Vehicle):
            return [c for c in self.checklists() if c.vehicle_id == owner.id]
        return [c for c in self.checklists() if c.trailer_id == owner.id]

    def unowned_checklists(self) -> list[Checklist]:
        return [c for c in self.checklists() if c.is_unowned]

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_vehicle(self, vehicle: Vehicle) -> None:
        """Delete *vehicle*; its trailer survives, references are cleared."""
        vehicle.trailer_id = None
        for log in self.drive_logs():
            if log.vehicle_id == vehicle.id:
                log.vehicle_id = None
        for checklist in self.checklists():
            if checklist.vehicle_id == vehicle.id:
                checklist.vehicle_id = None
        self._tables[EntityKind.VEHICLE].pop(vehicle.id, None)

    def delete_trailer(self, trailer: Trailer) -> None:
        owner = self.trailer_owner(trailer)
        if owner is not None:
            owner.trailer_id = None
        for checklist in self.checklists():
            if checklist.trailer_id == trailer.id:
                checklist.trailer_id = None
        self._tables[EntityKind.TRAILER].pop(trailer.id, None)

    def delete_drive_log(self, log: DriveLog) -> None:
        self._tables[EntityKind.DRIVE_LOG].pop(log.id, None)

    def delete_checklist(self, checklist: Checklist) -> None:
        """Delete *checklist* and its items after detaching drive logs."""
        for log in self.drive_logs():
            if log.checklist_id == checklist.id:
                log.checklist_id = None
        for item in self.items_for(checklist):
            self._tables[EntityKind.CHECKLIST_ITEM].pop(item.id, None)
        self._tables[EntityKind.CHECKLIST].pop(checklist.id, None)

    def delete_checklist_item(self, item: ChecklistItem) -> None:
        self._tables[EntityKind.CHECKLIST_ITEM].pop(item.id, None)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            vehicles=self.vehicles(),
            trailers=self.trailers(),
            drive_logs=self.drive_logs(),
            checklists=self.checklists(),
            checklist_items=self.checklist_items(),
        )

    def save(self) -> None:
        """Persist the whole graph.  Raises :class:`PurusStorageError`."""
        self._backend.save(self.snapshot())

    def clear(self) -> None:
        for table in self._tables.values():
            table.clear()

    def destroy(self) -> None:
        """Drop all local data, including the backing file."""
        self.clear()
        self._backend.destroy()

    def reattach(self, backend: StoreBackend) -> None:
        """Start over empty on *backend*, leaving any memory fallback."""
        self.clear()
        self._backend = backend
        self.fallback_reason = None


def open_entity_store(path: Path | None) -> EntityStore:
    """Open the file-backed store at *path*.

    Falls back to an in-memory store when the file cannot be read; the
    reason is kept in :attr:`EntityStore.fallback_reason` for diagnostics.
    ``path=None`` opens an in-memory store directly.
    """
    if path is None:
        return EntityStore(MemoryBackend())
    backend = FileBackend(path)
    try:
        return EntityStore.load(backend)
    except PurusStorageError as exc:
        _logger.warning("Local store at %s could not be opened, using in-memory storage: %s", path, exc)
        return EntityStore(MemoryBackend(), fallback_reason=f"Local storage failed, using in-memory storage. {exc}")
