"""Structural interface of the remote record service."""

from __future__ import annotations

from typing import Protocol

from purusdrive.models import Record


class RemoteRecordService(Protocol):
    """Zone/record primitives the sync orchestrator relies on.

    Every operation may suspend and may raise
    :class:`~purusdrive.exceptions.PurusRemoteError`.  None of them retry
    internally.
    """

    async def ensure_zone(self) -> None:
        """Create the sync zone; an existing zone counts as success."""
        ...

    async def query(self, record_type: str) -> list[Record]:
        """All records of *record_type*, oldest first, across all result pages."""
        ...

    async def save(self, record: Record) -> None:
        """Create or replace *record* keyed by its record name."""
        ...

    async def delete_all(self, record_type: str) -> None:
        """Delete every record of *record_type*; a no-op when there are none."""
        ...
