"""Reconciliation between the local entity store and the remote records.

Entity kinds are always processed in dependency order (parents before
children) on fetch and push, and in reverse order on remote deletion.
The orchestrator never retries: a failed pass raises, and callers that
run in the background log the failure and wait for the next trigger.

Overlapping runs are not serialized.  Remote saves and local upserts are
both keyed by id, so interleaving cannot duplicate entities, but a slow
fetch of one run can land after the push of another and transiently
revert a field until the next sync.
"""

from __future__ import annotations

import logging
from collections import Counter

from pydantic import BaseModel, Field

from purusdrive.models import EntityKind
from purusdrive.remote.base import RemoteRecordService
from purusdrive.store import EntityStore
from purusdrive.sync.codec import RecordCodec, UnresolvedReference

_logger = logging.getLogger(__name__)

FETCH_ORDER: tuple[EntityKind, ...] = (
    EntityKind.VEHICLE,
    EntityKind.TRAILER,
    EntityKind.DRIVE_LOG,
    EntityKind.CHECKLIST,
    EntityKind.CHECKLIST_ITEM,
)
PUSH_ORDER = FETCH_ORDER
DELETE_ORDER: tuple[EntityKind, ...] = tuple(reversed(FETCH_ORDER))


class FetchReport(BaseModel):
    fetched: dict[EntityKind, int] = Field(default_factory=dict)
    created: int = 0
    updated: int = 0
    skipped: int = 0
    unresolved: int = 0


class PushReport(BaseModel):
    pushed: dict[EntityKind, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.pushed.values())


class SyncReport(BaseModel):
    fetch: FetchReport
    push: PushReport


class SyncOrchestrator:
    """Drives fetch, push, full sync and remote wipe for one store."""

    def __init__(self, store: EntityStore, remote: RemoteRecordService) -> None:
        self._store = store
        self._remote = remote
        self._codec = RecordCodec(store)

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def remote(self) -> RemoteRecordService:
        return self._remote

    async def ensure_zone(self) -> None:
        await self._remote.ensure_zone()

    async def fetch_all(self) -> FetchReport:
        """Upsert every remote record into the store, then save once.

        References to entities that are not local yet are retried after
        all kinds were decoded; whatever is still missing stays empty.
        """
        report = FetchReport()
        pending: list[UnresolvedReference] = []

        for kind in FETCH_ORDER:
            records = await self._remote.query(kind.record_type)
            report.fetched[kind] = len(records)
            for record in records:
                result = self._codec.decode(record)
                if result is None:
                    report.skipped += 1
                    continue
                if result.created:
                    report.created += 1
                else:
                    report.updated += 1
                pending.extend(result.unresolved)

        remaining = self._codec.resolve(pending)
        report.unresolved = len(remaining)
        if remaining:
            missing = Counter(ref.target_kind.value for ref in remaining)
            _logger.debug("Unresolved references after fetch: %s", dict(missing))

        self._store.save()
        _logger.info(
            "Fetch from cloud completed: %d created, %d updated, %d unresolved",
            report.created,
            report.updated,
            report.unresolved,
        )
        return report

    async def push_all(self) -> PushReport:
        """Save every local entity remotely (full push, no delta tracking)."""
        report = PushReport()
        for kind in PUSH_ORDER:
            # Snapshot: local edits during the awaits below are picked up next push.
            entities = self._store.all_kind(kind)
            for entity in entities:
                await self._remote.save(self._codec.encode(entity))
            report.pushed[kind] = len(entities)
        _logger.info("Push to cloud completed: %d record(s)", report.total)
        return report

    async def full_sync(self) -> SyncReport:
        """Ensure the zone, fetch, then push so local state wins conflicts."""
        await self._remote.ensure_zone()
        fetch = await self.fetch_all()
        push = await self.push_all()
        _logger.info("Full sync completed")
        return SyncReport(fetch=fetch, push=push)

    async def delete_all_remote(self) -> None:
        """Delete every remote record, children before parents."""
        for kind in DELETE_ORDER:
            await self._remote.delete_all(kind.record_type)
        _logger.info("Deleted all records from cloud")
