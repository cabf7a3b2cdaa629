"""In-process record service.

Implements the same contract as the HTTP service against a dict: zones
must be provisioned before use, queries return records in creation
order through paginated cursors, saves replace by record name and keep
the original creation time.  Used for offline development and as the
fake remote in tests; :meth:`fail_next` injects server errors.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from datetime import UTC, datetime, timedelta

from purusdrive.exceptions import PurusRemoteApiError, PurusRemoteError
from purusdrive.models import Record

_EPOCH = datetime(2025, 1, 1, tzinfo=UTC)


class InMemoryRecordService:
    def __init__(self, *, page_size: int = 100, latency: float = 0.0, zone_exists: bool = False) -> None:
        self._page_size = page_size
        self._latency = latency
        self._zone_exists = zone_exists
        self._records: dict[str, Record] = {}
        self._sequence = itertools.count()
        self._failures: dict[str, list[PurusRemoteError]] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []
        """``(operation, record_type_or_name)`` for every call, in order."""

    # ------------------------------------------------------------------
    # Test / inspection helpers
    # ------------------------------------------------------------------

    def fail_next(self, operation: str, error: PurusRemoteError | None = None) -> None:
        """Make the next call of *operation* raise *error*."""
        self._failures[operation].append(
            error or PurusRemoteApiError(f"{operation} failed: SERVICE_UNAVAILABLE", code="SERVICE_UNAVAILABLE")
        )

    def records(self, record_type: str | None = None) -> list[Record]:
        found = [r for r in self._records.values() if record_type is None or r.record_type == record_type]
        return sorted(found, key=lambda r: r.created_at or _EPOCH)

    def get(self, record_name: str) -> Record | None:
        return self._records.get(record_name)

    @property
    def zone_exists(self) -> bool:
        return self._zone_exists

    async def _enter(self, operation: str, subject: str) -> None:
        self.calls.append((operation, subject))
        if self._latency:
            await asyncio.sleep(self._latency)
        else:
            await asyncio.sleep(0)
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)
        if operation != "ensure_zone" and not self._zone_exists:
            raise PurusRemoteApiError(f"{operation} failed: ZONE_NOT_FOUND", code="ZONE_NOT_FOUND", operation=operation)

    # ------------------------------------------------------------------
    # RemoteRecordService
    # ------------------------------------------------------------------

    async def ensure_zone(self) -> None:
        await self._enter("ensure_zone", "")
        self._zone_exists = True

    async def query_page(self, record_type: str, cursor: int = 0) -> tuple[list[Record], int | None]:
        """One result page starting at *cursor*; the next cursor or ``None``."""
        await self._enter("query", record_type)
        matching = self.records(record_type)
        page = matching[cursor : cursor + self._page_size]
        next_cursor = cursor + self._page_size
        return [r.model_copy(deep=True) for r in page], next_cursor if next_cursor < len(matching) else None

    async def query(self, record_type: str) -> list[Record]:
        results: list[Record] = []
        cursor: int | None = 0
        while cursor is not None:
            page, cursor = await self.query_page(record_type, cursor)
            results.extend(page)
        return results

    async def save(self, record: Record) -> None:
        await self._enter("save", record.record_name)
        existing = self._records.get(record.record_name)
        if existing is not None and existing.created_at is not None:
            created_at = existing.created_at
        else:
            created_at = _EPOCH + timedelta(milliseconds=next(self._sequence))
        self._records[record.record_name] = record.model_copy(deep=True, update={"created_at": created_at})

    async def delete_all(self, record_type: str) -> None:
        doomed = await self.query(record_type)
        if not doomed:
            return
        await self._enter("delete", record_type)
        for record in doomed:
            self._records.pop(record.record_name, None)
