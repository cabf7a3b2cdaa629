"""Export of store contents as JSON, plain text or HTML."""

from __future__ import annotations

import html
import json
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from purusdrive.models import Checklist, ChecklistItemState, DriveLog, Trailer, Vehicle
from purusdrive.store import EntityStore


class ExportScope(StrEnum):
    ALL = "all"
    VEHICLES = "vehicles"
    LOGS = "logs"
    CHECKLISTS = "checklists"

    @property
    def title(self) -> str:
        return {
            ExportScope.ALL: "All data",
            ExportScope.VEHICLES: "Vehicles",
            ExportScope.LOGS: "Drive logs",
            ExportScope.CHECKLISTS: "Checklists",
        }[self]


class ExportFormat(StrEnum):
    JSON = "json"
    TXT = "txt"
    HTML = "html"


@dataclass(frozen=True, slots=True)
class ExportResult:
    file_name: str
    data: bytes


_STATE_MARKS: dict[ChecklistItemState, str] = {
    ChecklistItemState.NOT_SELECTED: "[ ]",
    ChecklistItemState.SELECTED: "[x]",
    ChecklistItemState.NOT_APPLICABLE: "[-]",
    ChecklistItemState.NOT_OK: "[!]",
}


# ------------------------------------------------------------------
# JSON payload
# ------------------------------------------------------------------


class _Dto(BaseModel):
    model_config = ConfigDict(frozen=True)


class VehicleDTO(_Dto):
    id: uuid.UUID
    type: str
    brand_model: str
    color: str
    plate: str
    notes: str
    trailer_id: uuid.UUID | None
    last_edited: datetime


class TrailerDTO(_Dto):
    id: uuid.UUID
    brand_model: str
    color: str
    plate: str
    notes: str
    last_edited: datetime


class DriveLogDTO(_Dto):
    id: uuid.UUID
    vehicle_id: uuid.UUID | None
    date: datetime
    reason: str
    km_start: int
    km_end: int
    notes: str
    checklist_id: uuid.UUID | None
    last_edited: datetime


class ChecklistItemDTO(_Dto):
    id: uuid.UUID
    section: str
    title: str
    state: str
    note: str | None


class ChecklistDTO(_Dto):
    id: uuid.UUID
    vehicle_id: uuid.UUID | None
    trailer_id: uuid.UUID | None
    vehicle_type: str
    title: str
    last_edited: datetime
    items: list[ChecklistItemDTO]


class ExportPayload(_Dto):
    generated_at: datetime
    scope: ExportScope
    vehicles: list[VehicleDTO] | None = None
    trailers: list[TrailerDTO] | None = None
    drive_logs: list[DriveLogDTO] | None = None
    checklists: list[ChecklistDTO] | None = None


def _vehicle_dto(v: Vehicle) -> VehicleDTO:
    return VehicleDTO(
        id=v.id,
        type=v.type.value,
        brand_model=v.brand_model,
        color=v.color,
        plate=v.plate,
        notes=v.notes,
        trailer_id=v.trailer_id,
        last_edited=v.last_edited,
    )


def _trailer_dto(t: Trailer) -> TrailerDTO:
    return TrailerDTO(
        id=t.id,
        brand_model=t.brand_model,
        color=t.color,
        plate=t.plate,
        notes=t.notes,
        last_edited=t.last_edited,
    )


def _log_dto(log: DriveLog) -> DriveLogDTO:
    return DriveLogDTO(
        id=log.id,
        vehicle_id=log.vehicle_id,
        date=log.date,
        reason=log.reason,
        km_start=log.km_start,
        km_end=log.km_end,
        notes=log.notes,
        checklist_id=log.checklist_id,
        last_edited=log.last_edited,
    )


def _checklist_dto(store: EntityStore, c: Checklist) -> ChecklistDTO:
    return ChecklistDTO(
        id=c.id,
        vehicle_id=c.vehicle_id,
        trailer_id=c.trailer_id,
        vehicle_type=c.vehicle_type.value,
        title=c.title,
        last_edited=c.last_edited,
        items=[
            ChecklistItemDTO(id=i.id, section=i.section, title=i.title, state=i.state.value, note=i.note)
            for i in store.items_for(c)
        ],
    )


def build_payload(store: EntityStore, scope: ExportScope, now: datetime) -> ExportPayload:
    """Vehicles and trailers are always included as context for the other sections."""
    payload = ExportPayload(
        generated_at=now,
        scope=scope,
        vehicles=[_vehicle_dto(v) for v in store.vehicles()],
        trailers=[_trailer_dto(t) for t in store.trailers()],
    )
    update: dict[str, object] = {}
    if scope in (ExportScope.ALL, ExportScope.LOGS):
        update["drive_logs"] = [_log_dto(log) for log in store.drive_logs()]
    if scope in (ExportScope.ALL, ExportScope.CHECKLISTS):
        update["checklists"] = [_checklist_dto(store, c) for c in store.checklists()]
    return payload.model_copy(update=update)


def _json_export(store: EntityStore, scope: ExportScope, now: datetime) -> bytes:
    payload = build_payload(store, scope, now).model_dump(mode="json", exclude_none=True)
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False).encode("utf-8")


# ------------------------------------------------------------------
# Text / HTML
# ------------------------------------------------------------------


def _vehicle_label(v: Vehicle | None) -> str:
    return f"{v.brand_model} {v.plate}".strip() if v is not None else "(no vehicle)"


def _grouped_items(store: EntityStore, checklist: Checklist) -> dict[str, list[tuple[str, str, str | None]]]:
    sections: dict[str, list[tuple[str, str, str | None]]] = {}
    for item in store.items_for(checklist):
        sections.setdefault(item.section, []).append((_STATE_MARKS[item.state], item.title, item.note))
    return sections


def checklist_text(store: EntityStore, checklist: Checklist) -> str:
    lines: list[str] = []
    for section, items in _grouped_items(store, checklist).items():
        lines.append(f"  {section}")
        for mark, title, note in items:
            lines.append(f"    {mark} {title}" + (f" ({note})" if note else ""))
    return "\n".join(lines)


def checklist_html(store: EntityStore, checklist: Checklist) -> str:
    parts = [f"<h3>{html.escape(checklist.title)}</h3>"]
    for section, items in _grouped_items(store, checklist).items():
        parts.append(f"<h4>{html.escape(section)}</h4><ul>")
        for mark, title, note in items:
            note_html = f" <em>{html.escape(note)}</em>" if note else ""
            parts.append(f"<li>{html.escape(mark)} {html.escape(title)}{note_html}</li>")
        parts.append("</ul>")
    return "".join(parts)


def _text_export(store: EntityStore, scope: ExportScope, now: datetime) -> bytes:
    lines = [f"Export: {scope.title}", f"Generated: {now:%Y-%m-%d %H:%M:%S %Z}", "", "VEHICLES"]
    for v in store.vehicles():
        lines.append(f"- [{v.type.display_name}] {v.brand_model} {v.plate}")
        trailer = store.get(Trailer, v.trailer_id)
        if trailer is not None:
            lines.append(f"    trailer: {trailer.brand_model} {trailer.plate}")
    lines.append("")
    lines.append("TRAILERS")
    lines.extend(f"- {t.brand_model} {t.plate}" for t in store.trailers())
    lines.append("")

    if scope in (ExportScope.ALL, ExportScope.LOGS):
        lines.append("DRIVE LOGS")
        for log in store.drive_logs():
            vehicle = store.get(Vehicle, log.vehicle_id)
            lines.append(f"- {log.date:%Y-%m-%d %H:%M} | {_vehicle_label(vehicle)} | {log.reason}")
        lines.append("")

    if scope in (ExportScope.ALL, ExportScope.CHECKLISTS):
        lines.append("CHECKLISTS")
        for c in store.checklists():
            lines.append(f"- {c.title} | {c.vehicle_type.display_name}")
            lines.append(checklist_text(store, c))

    return "\n".join(lines).encode("utf-8")


def _html_export(store: EntityStore, scope: ExportScope, now: datetime) -> bytes:
    e = html.escape
    body = [f"<h1>Export: {e(scope.title)}</h1>", f"<p><strong>Generated:</strong> {e(f'{now:%Y-%m-%d %H:%M:%S %Z}')}</p>"]

    body.append("<h2>Vehicles</h2><ul>")
    for v in store.vehicles():
        entry = f"<li>[{e(v.type.display_name)}] {e(v.brand_model)} {e(v.plate)}"
        trailer = store.get(Trailer, v.trailer_id)
        if trailer is not None:
            entry += f"<br/><em>Trailer:</em> {e(trailer.brand_model)} {e(trailer.plate)}"
        body.append(entry + "</li>")
    body.append("</ul><h2>Trailers</h2><ul>")
    body.extend(f"<li>{e(t.brand_model)} {e(t.plate)}</li>" for t in store.trailers())
    body.append("</ul>")

    if scope in (ExportScope.ALL, ExportScope.LOGS):
        body.append("<h2>Drive Logs</h2><ul>")
        for log in store.drive_logs():
            vehicle = store.get(Vehicle, log.vehicle_id)
            body.append(f"<li>{e(f'{log.date:%Y-%m-%d %H:%M}')} | {e(_vehicle_label(vehicle))} | {e(log.reason)}</li>")
        body.append("</ul>")

    if scope in (ExportScope.ALL, ExportScope.CHECKLISTS):
        body.append("<h2>Checklists</h2>")
        body.extend(checklist_html(store, c) for c in store.checklists())

    document = (
        '<!doctype html>\n<html><head><meta charset="utf-8"><title>Export</title></head>\n'
        f"<body>{''.join(body)}</body></html>"
    )
    return document.encode("utf-8")


def export_file_name(scope: ExportScope, fmt: ExportFormat, now: datetime) -> str:
    return f"purusdrive_export_{scope.value}_{now:%Y%m%d_%H%M%S}.{fmt.value}"


def export_data(
    store: EntityStore,
    scope: ExportScope,
    fmt: ExportFormat,
    *,
    now: datetime | None = None,
) -> ExportResult:
    """Render *scope* of *store* as *fmt*."""
    now = now or datetime.now(UTC)
    scope, fmt = ExportScope(scope), ExportFormat(fmt)
    renderers = {
        ExportFormat.JSON: _json_export,
        ExportFormat.TXT: _text_export,
        ExportFormat.HTML: _html_export,
    }
    data = renderers[fmt](store, scope, now)
    return ExportResult(file_name=export_file_name(scope, fmt, now), data=data)
