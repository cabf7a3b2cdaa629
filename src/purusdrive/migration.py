"""One-time assignment of legacy checklists to a vehicle or trailer.

Checklists used to be global per vehicle type; now each belongs to one
vehicle or trailer.  Every unowned checklist is given to the most
recently edited matching owner: the newest trailer for trailer-type
checklists, otherwise the newest vehicle of the same type.  Checklists
without a matching owner stay unowned, so nothing is lost.

The migration is recorded in the preferences' checkpoint set only after
the store was saved.  A failed save leaves it unrecorded and it runs
again on the next launch; already assigned checklists are no longer
unowned, so re-running is safe.  It is also skipped while the store
runs on the in-memory fallback, which holds none of the legacy data.
"""

from __future__ import annotations

import logging

from purusdrive._constants import CHECKLIST_OWNERSHIP_MIGRATION
from purusdrive.exceptions import PurusStorageError
from purusdrive.models import Checklist, VehicleType
from purusdrive.preferences import Preferences
from purusdrive.store import EntityStore

_logger = logging.getLogger(__name__)


def assign_unowned_checklists(store: EntityStore) -> list[Checklist]:
    """Assign owners in *store*; returns the checklists that changed."""
    vehicles = sorted(store.vehicles(), key=lambda v: v.last_edited, reverse=True)
    trailers = sorted(store.trailers(), key=lambda t: t.last_edited, reverse=True)

    assigned: list[Checklist] = []
    for checklist in store.unowned_checklists():
        if checklist.vehicle_type is VehicleType.TRAILER:
            if trailers:
                checklist.trailer_id = trailers[0].id
                assigned.append(checklist)
            continue
        vehicle = next((v for v in vehicles if v.type == checklist.vehicle_type), None)
        if vehicle is not None:
            checklist.vehicle_id = vehicle.id
            assigned.append(checklist)
    return assigned


def run_ownership_migration_if_needed(store: EntityStore, preferences: Preferences) -> int | None:
    """Run the checklist ownership migration once.

    Returns the number of checklists assigned, or ``None`` when the
    migration was already applied, the store is on its memory fallback,
    or the result could not be saved.
    """
    if preferences.is_applied(CHECKLIST_OWNERSHIP_MIGRATION):
        return None
    if store.fallback_reason is not None:
        _logger.warning("Skipping checklist ownership migration while local storage is unavailable")
        return None

    assigned: list[Checklist] = []
    try:
        if store.unowned_checklists():
            assigned = assign_unowned_checklists(store)
            store.save()
        preferences.mark_applied(CHECKLIST_OWNERSHIP_MIGRATION)
    except PurusStorageError as exc:
        _logger.warning("Checklist ownership migration failed, will retry on next launch: %s", exc)
        return None

    _logger.info("Assigned %d legacy checklist(s) to vehicles/trailers", len(assigned))
    return len(assigned)
