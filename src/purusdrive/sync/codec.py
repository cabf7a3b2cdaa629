"""Bidirectional mapping between local entities and remote records.

Encoding is deterministic: the record name is derived from the record
type and the entity id, so encoding the same entity twice always
addresses the same remote record (the upsert key).

Decoding upserts into the :class:`~purusdrive.store.EntityStore` by the
``CD_id`` field and resolves reference fields against entities already
present locally.  References whose target is not present yet are not an
error: the relationship is left empty and reported back as an
:class:`UnresolvedReference` so the caller can retry resolution once
all kinds have been fetched.  A record without a reference field leaves
the local relationship unchanged, so links made locally survive the
fetch that precedes every push.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from purusdrive._constants import FIELD_PREFIX
from purusdrive.models import (
    ENTITY_CLASSES,
    ChecklistItemState,
    Entity,
    EntityKind,
    Record,
    RecordReference,
    Trailer,
    Vehicle,
    VehicleType,
    entity_id_from_record_name,
    record_name_for,
)
from purusdrive.store import EntityStore

_logger = logging.getLogger(__name__)


class _FieldType(enum.Enum):
    STRING = "string"
    OPTIONAL_STRING = "optional_string"
    INT = "int"
    DATE = "date"
    BYTES = "bytes"
    ENUM = "enum"


@dataclass(frozen=True, slots=True)
class _ScalarField:
    name: str
    attr: str
    type: _FieldType
    enum_cls: type[enum.Enum] | None = None


@dataclass(frozen=True, slots=True)
class _ReferenceField:
    name: str
    attr: str
    target: EntityKind


def _s(name: str, attr: str, field_type: _FieldType = _FieldType.STRING) -> _ScalarField:
    return _ScalarField(name, attr, field_type)


_LAST_EDITED = _s("lastEdited", "last_edited", _FieldType.DATE)

_SCALARS: dict[EntityKind, tuple[_ScalarField, ...]] = {
    EntityKind.VEHICLE: (
        _ScalarField("type", "type", _FieldType.ENUM, VehicleType),
        _s("brandModel", "brand_model"),
        _s("color", "color"),
        _s("plate", "plate"),
        _s("notes", "notes"),
        _s("photoData", "photo_data", _FieldType.BYTES),
        _LAST_EDITED,
    ),
    EntityKind.TRAILER: (
        _s("brandModel", "brand_model"),
        _s("color", "color"),
        _s("plate", "plate"),
        _s("notes", "notes"),
        _s("photoData", "photo_data", _FieldType.BYTES),
        _LAST_EDITED,
    ),
    EntityKind.DRIVE_LOG: (
        _s("date", "date", _FieldType.DATE),
        _s("reason", "reason"),
        _s("kmStart", "km_start", _FieldType.INT),
        _s("kmEnd", "km_end", _FieldType.INT),
        _s("notes", "notes"),
        _LAST_EDITED,
    ),
    EntityKind.CHECKLIST: (
        _ScalarField("vehicleType", "vehicle_type", _FieldType.ENUM, VehicleType),
        _s("title", "title"),
        _LAST_EDITED,
    ),
    EntityKind.CHECKLIST_ITEM: (
        _s("section", "section"),
        _s("title", "title"),
        _ScalarField("state", "state", _FieldType.ENUM, ChecklistItemState),
        _s("note", "note", _FieldType.OPTIONAL_STRING),
        _LAST_EDITED,
    ),
}

_REFERENCES: dict[EntityKind, tuple[_ReferenceField, ...]] = {
    EntityKind.VEHICLE: (_ReferenceField("trailer", "trailer_id", EntityKind.TRAILER),),
    EntityKind.TRAILER: (),
    EntityKind.DRIVE_LOG: (
        _ReferenceField("vehicle", "vehicle_id", EntityKind.VEHICLE),
        _ReferenceField("checklist", "checklist_id", EntityKind.CHECKLIST),
    ),
    EntityKind.CHECKLIST: (
        _ReferenceField("vehicle", "vehicle_id", EntityKind.VEHICLE),
        _ReferenceField("trailer", "trailer_id", EntityKind.TRAILER),
    ),
    EntityKind.CHECKLIST_ITEM: (_ReferenceField("checklist", "checklist_id", EntityKind.CHECKLIST),),
}

# Derived back-reference, written for compatibility and never decoded:
# the vehicle's CD_trailer field is authoritative.
_TRAILER_LINKED_VEHICLE = "linkedVehicle"


def field_name(name: str) -> str:
    """Prefixed remote field name, e.g. ``CD_brandModel``."""
    return f"{FIELD_PREFIX}{name}"


def reference_to(kind: EntityKind, entity_id: uuid.UUID) -> RecordReference:
    return RecordReference(record_name=record_name_for(kind.record_type, entity_id))


@dataclass(frozen=True, slots=True)
class UnresolvedReference:
    """A relationship whose target was not present when its record was decoded."""

    source_kind: EntityKind
    source_id: uuid.UUID
    attr: str
    target_kind: EntityKind
    target_id: uuid.UUID


@dataclass(slots=True)
class DecodeResult:
    entity: Entity
    created: bool
    unresolved: list[UnresolvedReference] = field(default_factory=list)


class RecordCodec:
    """Encode entities of *store* and decode records into it."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def encode(self, entity: Entity) -> Record:
        kind = entity.kind
        fields: dict[str, Any] = {field_name("id"): str(entity.id).upper()}

        for fdef in _SCALARS[kind]:
            value = getattr(entity, fdef.attr)
            if value is None:
                # Absent optionals are absent fields, never a sentinel.
                continue
            if fdef.type is _FieldType.ENUM:
                value = value.value
            fields[field_name(fdef.name)] = value

        for ref in _REFERENCES[kind]:
            target_id = getattr(entity, ref.attr)
            if target_id is not None:
                fields[field_name(ref.name)] = reference_to(ref.target, target_id)

        if isinstance(entity, Trailer):
            owner = self._store.trailer_owner(entity)
            if owner is not None:
                fields[field_name(_TRAILER_LINKED_VEHICLE)] = reference_to(EntityKind.VEHICLE, owner.id)

        return Record(
            record_type=kind.record_type,
            record_name=record_name_for(kind.record_type, entity.id),
            fields=fields,
        )

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, record: Record) -> DecodeResult | None:
        """Upsert the entity carried by *record* into the store.

        Returns ``None`` (and logs) when the record has no usable
        ``CD_id``.  Raises :class:`ValueError` for unknown record types.
        """
        kind = EntityKind.from_record_type(record.record_type)
        entity_id = _parse_uuid(record.get(field_name("id")))
        if entity_id is None:
            _logger.debug("Skipping %s record %s without a valid id", record.record_type, record.record_name)
            return None

        cls = ENTITY_CLASSES[kind]
        entity = self._store.get(cls, entity_id)
        created = entity is None
        if entity is None:
            entity = self._store.add(cls(id=entity_id))

        for fdef in _SCALARS[kind]:
            _apply_scalar(entity, fdef, record.get(field_name(fdef.name)))

        result = DecodeResult(entity=entity, created=created)
        for ref in _REFERENCES[kind]:
            pending = self._apply_reference(entity, ref, record.get(field_name(ref.name)))
            if pending is not None:
                result.unresolved.append(pending)
        return result

    def _apply_reference(self, entity: Entity, ref: _ReferenceField, raw: Any) -> UnresolvedReference | None:
        if not isinstance(raw, RecordReference):
            # Absent reference: the local link stays as it is.
            return None
        target_id = entity_id_from_record_name(raw.record_name, ref.target.record_type)
        if target_id is None:
            _logger.debug("Ignoring malformed %s reference %r", ref.name, raw.record_name)
            return None

        target = self._store.get_kind(ref.target, target_id)
        self._set_relationship(entity, ref.attr, target)
        if target is None:
            return UnresolvedReference(
                source_kind=entity.kind,
                source_id=entity.id,
                attr=ref.attr,
                target_kind=ref.target,
                target_id=target_id,
            )
        return None

    def _set_relationship(self, entity: Entity, attr: str, target: Entity | None) -> None:
        if isinstance(entity, Vehicle) and attr == "trailer_id":
            self._store.link_trailer(entity, target if isinstance(target, Trailer) else None)
            return
        setattr(entity, attr, target.id if target is not None else None)

    def resolve(self, pending: list[UnresolvedReference]) -> list[UnresolvedReference]:
        """Second resolution pass; returns the references still unresolved."""
        remaining: list[UnresolvedReference] = []
        for ref in pending:
            source = self._store.get_kind(ref.source_kind, ref.source_id)
            if source is None:
                continue
            target = self._store.get_kind(ref.target_kind, ref.target_id)
            if target is None:
                remaining.append(ref)
                continue
            self._set_relationship(source, ref.attr, target)
        return remaining


def _parse_uuid(value: Any) -> uuid.UUID | None:
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def _apply_scalar(entity: Entity, fdef: _ScalarField, value: Any) -> None:
    """Copy one scalar into *entity* using the per-type fallback rules.

    Missing strings/ints become ``""``/``0``; missing dates and unknown
    enum values keep the current value; missing bytes/optional strings
    become ``None``.
    """
    if fdef.type is _FieldType.STRING:
        setattr(entity, fdef.attr, value if isinstance(value, str) else "")
    elif fdef.type is _FieldType.OPTIONAL_STRING:
        setattr(entity, fdef.attr, value if isinstance(value, str) else None)
    elif fdef.type is _FieldType.INT:
        is_int = isinstance(value, int) and not isinstance(value, bool)
        setattr(entity, fdef.attr, value if is_int else 0)
    elif fdef.type is _FieldType.DATE:
        if isinstance(value, datetime):
            setattr(entity, fdef.attr, value)
    elif fdef.type is _FieldType.BYTES:
        setattr(entity, fdef.attr, bytes(value) if isinstance(value, (bytes, bytearray)) else None)
    elif fdef.type is _FieldType.ENUM:
        assert fdef.enum_cls is not None  # noqa: S101
        try:
            setattr(entity, fdef.attr, fdef.enum_cls(value))
        except ValueError:
            _logger.debug("Keeping %s for unknown %s value %r", fdef.attr, fdef.name, value)
