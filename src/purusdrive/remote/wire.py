"""JSON wire encoding of records for the record web service.

Field values travel as ``{"value": ..., "type": ...}`` objects:

* ``STRING``    - ``str``
* ``INT64``     - ``int``
* ``TIMESTAMP`` - epoch milliseconds, decoded to a UTC ``datetime``
* ``BYTES``     - base64 text, decoded to ``bytes``
* ``REFERENCE`` - ``{"recordName": ..., "action": "NONE"}``
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import UTC, datetime
from typing import Any

from purusdrive.models import Record, RecordReference, ReferenceAction

_logger = logging.getLogger(__name__)


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def _ms_to_datetime(value: Any) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=UTC)
    except (TypeError, ValueError, OverflowError):
        return None


def encode_field(value: Any) -> dict[str, Any]:
    if isinstance(value, RecordReference):
        return {
            "type": "REFERENCE",
            "value": {"recordName": value.record_name, "action": value.action.value},
        }
    if isinstance(value, datetime):
        return {"type": "TIMESTAMP", "value": _datetime_to_ms(value)}
    if isinstance(value, (bytes, bytearray)):
        return {"type": "BYTES", "value": base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, bool):
        return {"type": "INT64", "value": int(value)}
    if isinstance(value, int):
        return {"type": "INT64", "value": value}
    if isinstance(value, str):
        return {"type": "STRING", "value": value}
    raise TypeError(f"unsupported record field value: {type(value).__name__}")


def decode_field(raw: Any) -> Any:
    """Decode one wire field; unknown or malformed values decode to ``None``."""
    if not isinstance(raw, dict):
        return None
    field_type = raw.get("type")
    value = raw.get("value")
    if field_type == "REFERENCE":
        if not isinstance(value, dict) or not isinstance(value.get("recordName"), str):
            return None
        try:
            action = ReferenceAction(value.get("action", "NONE"))
        except ValueError:
            action = ReferenceAction.NONE
        return RecordReference(record_name=value["recordName"], action=action)
    if field_type == "TIMESTAMP":
        return _ms_to_datetime(value)
    if field_type in {"BYTES", "ASSETID"}:
        if not isinstance(value, str):
            return None
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            return None
    if field_type in {"INT64", "DOUBLE"}:
        return value if isinstance(value, (int, float)) and not isinstance(value, bool) else None
    if field_type == "STRING" or field_type is None:
        return value
    _logger.debug("Unsupported wire field type %r", field_type)
    return None


def record_to_wire(record: Record) -> dict[str, Any]:
    return {
        "recordType": record.record_type,
        "recordName": record.record_name,
        "fields": {name: encode_field(value) for name, value in record.fields.items()},
    }


def record_from_wire(raw: dict[str, Any]) -> Record:
    fields: dict[str, Any] = {}
    raw_fields = raw.get("fields")
    if isinstance(raw_fields, dict):
        for name, value in raw_fields.items():
            decoded = decode_field(value)
            if decoded is not None:
                fields[name] = decoded

    created = raw.get("created")
    created_at = _ms_to_datetime(created.get("timestamp")) if isinstance(created, dict) else None

    return Record(
        record_type=str(raw.get("recordType", "")),
        record_name=str(raw.get("recordName", "")),
        fields=fields,
        created_at=created_at,
    )
