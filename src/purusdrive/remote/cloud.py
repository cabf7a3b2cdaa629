"""HTTP client for the private cloud record web service.

Speaks the JSON record API of a hosted private database::

    POST {base_url}/database/1/{container}/{environment}/private/{operation}

with the operations ``zones/modify``, ``records/query`` and
``records/modify``.  Authentication is carried in the ``ckAPIToken`` and
``ckWebAuthToken`` query parameters.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from purusdrive._constants import (
    CREATION_TIME_SORT_KEY,
    MODIFY_BATCH_LIMIT,
    PERMANENT_ERROR_CODES,
    USER_AGENT,
    ZONE_EXISTS_CODES,
)
from purusdrive._redact import redact_for_log
from purusdrive.config import SyncConfig
from purusdrive.exceptions import PurusConfigError, PurusRemoteApiError, PurusTransportError
from purusdrive.models import Record
from purusdrive.remote.wire import record_from_wire, record_to_wire

_logger = logging.getLogger(__name__)


def _api_error(operation: str, code: str, reason: str) -> PurusRemoteApiError:
    permanent = code in PERMANENT_ERROR_CODES
    return PurusRemoteApiError(
        f"{operation} failed: {code} {reason}".rstrip(),
        code=code,
        operation=operation,
        permanent=permanent,
    )


def _raise_for_item_errors(operation: str, items: Any) -> None:
    """Raise for the first per-record/per-zone ``serverErrorCode``."""
    if not isinstance(items, list):
        return
    for item in items:
        if isinstance(item, dict) and item.get("serverErrorCode"):
            raise _api_error(operation, str(item["serverErrorCode"]), str(item.get("reason", "")))


class CloudRecordService:
    """:class:`~purusdrive.remote.base.RemoteRecordService` over HTTP."""

    def __init__(self, config: SyncConfig, http_session: aiohttp.ClientSession) -> None:
        if not config.api_token:
            raise PurusConfigError("api_token is required for the cloud record service")
        self._config = config
        self._http = http_session
        self._zone_id = {"zoneName": config.zone_name}

    def _url(self, operation: str) -> str:
        base = self._config.base_url.rstrip("/")
        return f"{base}/database/1/{self._config.container_id}/{self._config.environment}/private/{operation}"

    def _params(self) -> dict[str, str]:
        params = {"ckAPIToken": self._config.api_token or ""}
        if self._config.web_auth_token:
            params["ckWebAuthToken"] = self._config.web_auth_token
        return params

    async def _post(self, operation: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST *payload* to *operation* and return the decoded JSON body."""
        url = self._url(operation)
        headers = {"content-type": "application/json; charset=UTF-8", "user-agent": USER_AGENT}
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("POST %s %s", url, redact_for_log(payload, max_string=128))

        try:
            async with self._http.post(
                url,
                data=json.dumps(payload, separators=(",", ":")),
                params=self._params(),
                headers=headers,
                timeout=timeout,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise PurusTransportError(f"Request to {operation} failed: {exc}", operation=operation) from exc
        except asyncio.TimeoutError as exc:
            raise PurusTransportError(f"Request to {operation} timed out", operation=operation) from exc

        try:
            body = json.loads(text) if text else {}
        except json.JSONDecodeError as exc:
            raise PurusTransportError(
                f"Invalid JSON from {operation} (HTTP {status}): {text[:200]}",
                status_code=status,
                operation=operation,
            ) from exc

        if not isinstance(body, dict):
            raise PurusTransportError(f"Unexpected response from {operation}", status_code=status, operation=operation)

        if status != 200:
            code = body.get("serverErrorCode")
            if code:
                raise _api_error(operation, str(code), str(body.get("reason", "")))
            raise PurusTransportError(
                f"HTTP {status} from {operation}: {text[:200]}",
                status_code=status,
                operation=operation,
            )
        return body

    # ------------------------------------------------------------------
    # RemoteRecordService
    # ------------------------------------------------------------------

    async def ensure_zone(self) -> None:
        payload = {"operations": [{"operationType": "create", "zone": {"zoneID": self._zone_id}}]}
        try:
            body = await self._post("zones/modify", payload)
            _raise_for_item_errors("zones/modify", body.get("zones"))
        except PurusRemoteApiError as exc:
            if exc.code not in ZONE_EXISTS_CODES:
                raise
            _logger.debug("Zone %s already exists", self._config.zone_name)

    async def _query_page(self, record_type: str, marker: str | None) -> tuple[list[Record], str | None]:
        payload: dict[str, Any] = {
            "zoneID": self._zone_id,
            "resultsLimit": self._config.page_size,
            "query": {
                "recordType": record_type,
                "sortBy": [{"fieldName": CREATION_TIME_SORT_KEY, "ascending": True}],
            },
        }
        if marker:
            payload["continuationMarker"] = marker
        body = await self._post("records/query", payload)
        raw_records = body.get("records") or []
        _raise_for_item_errors("records/query", raw_records)
        records = [record_from_wire(raw) for raw in raw_records if isinstance(raw, dict)]
        next_marker = body.get("continuationMarker")
        return records, next_marker if isinstance(next_marker, str) and next_marker else None

    async def query(self, record_type: str) -> list[Record]:
        results: list[Record] = []
        marker: str | None = None
        while True:
            page, marker = await self._query_page(record_type, marker)
            results.extend(page)
            if marker is None:
                break
        _logger.debug("Queried %d %s record(s)", len(results), record_type)
        return results

    async def _modify(self, operations: list[dict[str, Any]]) -> None:
        body = await self._post("records/modify", {"zoneID": self._zone_id, "operations": operations})
        _raise_for_item_errors("records/modify", body.get("records"))

    async def save(self, record: Record) -> None:
        await self._modify([{"operationType": "forceReplace", "record": record_to_wire(record)}])

    async def delete_all(self, record_type: str) -> None:
        records = await self.query(record_type)
        if not records:
            return
        for start in range(0, len(records), MODIFY_BATCH_LIMIT):
            batch = records[start : start + MODIFY_BATCH_LIMIT]
            await self._modify(
                [{"operationType": "forceDelete", "record": {"recordName": r.record_name}} for r in batch]
            )
        _logger.debug("Deleted %d %s record(s)", len(records), record_type)
