"""Sync layer.

Maps entities to remote records, reconciles the local store with the
remote record service, and drives storage mode transitions.
"""

from purusdrive.sync.codec import DecodeResult, RecordCodec, UnresolvedReference
from purusdrive.sync.orchestrator import (
    DELETE_ORDER,
    FETCH_ORDER,
    FetchReport,
    PushReport,
    SyncOrchestrator,
    SyncReport,
)
from purusdrive.sync.progress import MigrationProgress, ProgressPhase, ProgressState
from purusdrive.sync.transition import StorageModeTransitionManager

__all__ = [
    "DELETE_ORDER",
    "DecodeResult",
    "FETCH_ORDER",
    "FetchReport",
    "MigrationProgress",
    "ProgressPhase",
    "ProgressState",
    "PushReport",
    "RecordCodec",
    "StorageModeTransitionManager",
    "SyncOrchestrator",
    "SyncReport",
    "UnresolvedReference",
]
