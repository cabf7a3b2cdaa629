"""Vehicle and trailer models."""

from __future__ import annotations

import uuid
from enum import StrEnum
from typing import ClassVar

from pydantic import Field

from purusdrive.models._base import Entity, EntityKind


class VehicleType(StrEnum):
    """Kind of vehicle; values are the wire values."""

    CAR = "car"
    VAN = "van"
    TRUCK = "truck"
    TRAILER = "trailer"
    CAMPER = "camper"
    BOAT = "boat"
    MOTORBIKE = "motorbike"
    SCOOTER = "scooter"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Vehicle(Entity):
    """A vehicle owned by the user.

    ``trailer_id`` is the owned-trailer link.  Never assign it directly;
    use :meth:`purusdrive.store.EntityStore.link_trailer` which keeps the
    one-trailer-one-vehicle invariant.
    """

    kind: ClassVar[EntityKind] = EntityKind.VEHICLE

    type: VehicleType = VehicleType.CAR
    brand_model: str = ""
    color: str = ""
    plate: str = ""
    notes: str = ""
    photo_data: bytes | None = None
    trailer_id: uuid.UUID | None = Field(default=None)


class Trailer(Entity):
    """A trailer.

    The back-reference to the towing vehicle is derived from
    :attr:`Vehicle.trailer_id` and therefore not stored here.
    """

    kind: ClassVar[EntityKind] = EntityKind.TRAILER

    brand_model: str = ""
    color: str = ""
    plate: str = ""
    notes: str = ""
    photo_data: bytes | None = None
