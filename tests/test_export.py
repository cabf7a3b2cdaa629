from __future__ import annotations

import json
from datetime import UTC, datetime

from purusdrive.export import ExportFormat, ExportScope, export_data
from purusdrive.models import Checklist, ChecklistItem, ChecklistItemState, DriveLog, Trailer, Vehicle, VehicleType
from purusdrive.store import EntityStore

_NOW = datetime(2026, 3, 4, 5, 6, 7, tzinfo=UTC)


def _store() -> EntityStore:
    store = EntityStore()
    trailer = store.add(Trailer(brand_model="Boeckmann", plate="B-TR 1"))
    vehicle = store.add(Vehicle(type=VehicleType.VAN, brand_model="VW T6", plate="B-PD 123", photo_data=b"jpeg"))
    store.link_trailer(vehicle, trailer)
    checklist = store.add(Checklist(vehicle_type=VehicleType.VAN, title="Departure <quick>", vehicle_id=vehicle.id))
    store.add_checklist_item(
        checklist, ChecklistItem(section="Outside", title="Lights", state=ChecklistItemState.SELECTED)
    )
    store.add_checklist_item(
        checklist, ChecklistItem(section="Outside", title="Tyres", state=ChecklistItemState.NOT_OK, note="worn")
    )
    store.add(DriveLog(vehicle_id=vehicle.id, date=_NOW, reason="Work & errands", km_start=10, km_end=55))
    return store


def test_file_name_carries_scope_and_timestamp() -> None:
    result = export_data(_store(), ExportScope.LOGS, ExportFormat.TXT, now=_NOW)
    assert result.file_name == "purusdrive_export_logs_20260304_050607.txt"


def test_json_export_limits_sections_to_scope() -> None:
    result = export_data(_store(), "logs", "json", now=_NOW)  # type: ignore[arg-type]

    payload = json.loads(result.data)
    assert payload["scope"] == "logs"
    assert [v["plate"] for v in payload["vehicles"]] == ["B-PD 123"]
    assert "photo_data" not in payload["vehicles"][0]
    assert payload["drive_logs"][0]["km_end"] == 55
    assert "checklists" not in payload


def test_json_export_all_nests_checklist_items() -> None:
    payload = json.loads(export_data(_store(), ExportScope.ALL, ExportFormat.JSON, now=_NOW).data)

    items = payload["checklists"][0]["items"]
    assert [i["title"] for i in items] == ["Lights", "Tyres"]
    assert items[1]["state"] == "notOk"
    assert items[1]["note"] == "worn"


def test_text_export_marks_item_states() -> None:
    text = export_data(_store(), ExportScope.CHECKLISTS, ExportFormat.TXT, now=_NOW).data.decode("utf-8")

    assert "VEHICLES" in text
    assert "    trailer: Boeckmann B-TR 1" in text
    assert "    [x] Lights" in text
    assert "    [!] Tyres (worn)" in text
    assert "DRIVE LOGS" not in text


def test_html_export_escapes_user_text() -> None:
    html = export_data(_store(), ExportScope.ALL, ExportFormat.HTML, now=_NOW).data.decode("utf-8")

    assert html.startswith("<!doctype html>")
    assert "Departure &lt;quick&gt;" in html
    assert "Work &amp; errands" in html
    assert "<h2>Checklists</h2>" in html
