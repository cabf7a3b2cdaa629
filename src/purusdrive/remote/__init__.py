"""Remote record service layer.

The sync orchestrator only depends on :class:`RemoteRecordService`;
:class:`CloudRecordService` talks to the hosted private database over
HTTP and :class:`InMemoryRecordService` keeps records in process.
"""

from purusdrive.remote.base import RemoteRecordService
from purusdrive.remote.cloud import CloudRecordService
from purusdrive.remote.memory import InMemoryRecordService

__all__ = ["CloudRecordService", "InMemoryRecordService", "RemoteRecordService"]
