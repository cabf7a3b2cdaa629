"""Local entity store.

This package owns the persisted object graph; the sync layer and UI
collaborators mutate it, only this package writes it to disk.
"""

from purusdrive.store.backend import FileBackend, MemoryBackend, StoreBackend, StoreSnapshot
from purusdrive.store.entity_store import EntityStore, open_entity_store

__all__ = [
    "EntityStore",
    "FileBackend",
    "MemoryBackend",
    "StoreBackend",
    "StoreSnapshot",
    "open_entity_store",
]
