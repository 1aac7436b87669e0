# plate_inventory/reconcile.py

import logging
from dataclasses import dataclass
from typing import AbstractSet, Optional

from .models import PlateRecord
from .schemas import PendingPlate
from .store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class Reconciliation:
    """Exactly one of `auto_saved` / `pending` is set."""
    auto_saved: Optional[PlateRecord] = None
    pending: Optional[PendingPlate] = None


def reconcile(plate: str, manifest: AbstractSet[str], image_url: Optional[str], store: RecordStore) -> Reconciliation:
    """
    Matches a canonical plate against the manifest snapshot.

    A plate in the manifest is saved right away as matched. Any other plate
    comes back as a PendingPlate and nothing is written until the user
    confirms it.
    """
    if plate in manifest:
        record = store.add_plate(plate, image_url, is_in_warehouse=True)
        logger.info(f"Plate {plate} found in warehouse, saved automatically")
        return Reconciliation(auto_saved=record)

    logger.info(f"Plate {plate} not in warehouse, waiting for confirmation")
    return Reconciliation(pending=PendingPlate(plate_number=plate, image_url=image_url))


def confirm_unmatched(pending: PendingPlate, store: RecordStore) -> PlateRecord:
    return store.add_plate(pending.plate_number, pending.image_url, is_in_warehouse=False)
