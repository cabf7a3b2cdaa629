from __future__ import annotations

from datetime import UTC, datetime

import pytest

from purusdrive.models import Record, RecordReference
from purusdrive.remote.wire import decode_field, encode_field, record_from_wire, record_to_wire


def test_encode_field_types() -> None:
    assert encode_field("Golf") == {"type": "STRING", "value": "Golf"}
    assert encode_field(42) == {"type": "INT64", "value": 42}
    assert encode_field(True) == {"type": "INT64", "value": 1}
    assert encode_field(b"ABC") == {"type": "BYTES", "value": "QUJD"}
    assert encode_field(datetime(2026, 1, 1, tzinfo=UTC)) == {"type": "TIMESTAMP", "value": 1767225600000}
    assert encode_field(RecordReference(record_name="CD_Trailer_X")) == {
        "type": "REFERENCE",
        "value": {"recordName": "CD_Trailer_X", "action": "NONE"},
    }
    with pytest.raises(TypeError):
        encode_field(1.5)


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "plain",
        {"type": "REFERENCE", "value": "CD_Trailer_X"},
        {"type": "BYTES", "value": "not base64!"},
        {"type": "TIMESTAMP", "value": "soon"},
        {"type": "INT64", "value": True},
        {"type": "LOCATION", "value": {"latitude": 1.0}},
    ],
)
def test_decode_field_malformed_values_are_dropped(raw: object) -> None:
    assert decode_field(raw) is None


def test_record_from_wire_reads_fields_and_creation_time() -> None:
    raw = {
        "recordType": "CD_Vehicle",
        "recordName": "CD_Vehicle_ABC",
        "created": {"timestamp": 1767225600000},
        "fields": {
            "CD_plate": {"type": "STRING", "value": "B-PD 123"},
            "CD_photoData": {"type": "BYTES", "value": "QUJD"},
            "CD_trailer": {"type": "REFERENCE", "value": {"recordName": "CD_Trailer_X", "action": "DELETE_SELF"}},
            "CD_broken": {"type": "TIMESTAMP", "value": None},
        },
    }

    record = record_from_wire(raw)
    assert record.record_type == "CD_Vehicle"
    assert record.created_at == datetime(2026, 1, 1, tzinfo=UTC)
    assert record.get("CD_plate") == "B-PD 123"
    assert record.get("CD_photoData") == b"ABC"
    assert record.get("CD_trailer").record_name == "CD_Trailer_X"
    assert "CD_broken" not in record.fields


def test_record_to_wire_and_back_keeps_values() -> None:
    record = Record(
        record_type="CD_DriveLog",
        record_name="CD_DriveLog_1",
        fields={"CD_kmStart": 100, "CD_date": datetime(2026, 2, 3, 4, 5, 6, tzinfo=UTC), "CD_reason": "Work"},
    )
    decoded = record_from_wire(record_to_wire(record))
    assert decoded.fields == record.fields
