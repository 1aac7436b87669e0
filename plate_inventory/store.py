# plate_inventory/store.py

import logging
from typing import Callable, FrozenSet, List, Optional, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import FETCH_CHUNK_SIZE
from .exceptions import ManifestFetchFailure, PersistenceFailure
from .models import MATCHED, UNMATCHED, ManifestPlate, PlateRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

PLATES_TABLE = "plates"
MANIFEST_TABLE = "excel_plates"


def fetch_in_chunks(fetch_range: Callable[[int, int], Sequence[T]], chunk_size: int = FETCH_CHUNK_SIZE) -> List[T]:
    """
    Reads every row through `fetch_range(start, end)` (inclusive bounds),
    one window of `chunk_size` rows at a time.

    Stops only on an empty window: some backends return a short page
    before the last one.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")

    rows: List[T] = []
    start = 0
    while True:
        chunk = fetch_range(start, start + chunk_size - 1)
        if not chunk:
            break
        rows.extend(chunk)
        start += chunk_size
    return rows


class RecordStore:
    """Scanned plate records and the warehouse manifest, on top of a SQLAlchemy session"""

    TABLES = {PLATES_TABLE: PlateRecord, MANIFEST_TABLE: ManifestPlate}

    def __init__(self, db: Session, chunk_size: int = FETCH_CHUNK_SIZE):
        self.db = db
        self.chunk_size = chunk_size

    def _model(self, table: str):
        try:
            return self.TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    def select_range(self, table: str, start: int, end: int) -> list:
        model = self._model(table)
        return (
            self.db.query(model)
            .order_by(model.id)
            .offset(start)
            .limit(end - start + 1)
            .all()
        )

    def fetch_all(self, table: str) -> list:
        return fetch_in_chunks(lambda start, end: self.select_range(table, start, end), self.chunk_size)

    def load_manifest(self) -> FrozenSet[str]:
        """Manifest snapshot for a capture session. Raises ManifestFetchFailure on any backend error."""
        try:
            rows = self.fetch_all(MANIFEST_TABLE)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching warehouse plates: {e}")
            raise ManifestFetchFailure(f"Failed to load warehouse inventory: {e.__class__.__name__}")
        return frozenset(row.plate for row in rows)

    def _insert(self, instance):
        try:
            self.db.add(instance)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Insert rejected: {e}")
            raise PersistenceFailure(f"Failed to save record: {e.__class__.__name__}")
        self.db.refresh(instance)
        return instance

    def _delete_all(self, model) -> int:
        try:
            deleted = self.db.query(model).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Delete rejected: {e}")
            raise PersistenceFailure(f"Failed to delete records: {e.__class__.__name__}")
        return deleted

    def add_plate(self, plate: str, image_url: Optional[str], is_in_warehouse: bool) -> PlateRecord:
        record = PlateRecord(
            plate=plate,
            image_url=image_url,
            is_in_warehouse=is_in_warehouse,
            status=MATCHED if is_in_warehouse else UNMATCHED,
        )
        self._insert(record)
        logger.info(f"Saved plate {record.plate} ({record.status})")
        return record

    def add_manifest_plate(self, plate: str) -> ManifestPlate:
        return self._insert(ManifestPlate(plate=plate))

    def clear_plates(self) -> int:
        deleted = self._delete_all(PlateRecord)
        logger.info(f"Cleared {deleted} scanned plates")
        return deleted

    def clear_manifest(self) -> int:
        deleted = self._delete_all(ManifestPlate)
        logger.info(f"Cleared {deleted} warehouse plates")
        return deleted

    def stats(self) -> dict:
        plates = self.fetch_all(PLATES_TABLE)
        matched = sum(1 for p in plates if p.is_in_warehouse)
        return {
            "total": len(plates),
            "matched": matched,
            "unmatched": len(plates) - matched,
            "warehouse": len(self.fetch_all(MANIFEST_TABLE)),
        }
