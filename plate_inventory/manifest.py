# plate_inventory/manifest.py

import csv
import io
import re
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from openpyxl import load_workbook

from .config import ALLOWED_MANIFEST_EXTENSIONS, MAX_FILE_SIZE
from .exceptions import FileParseFailure, FileSizeError, PersistenceFailure
from .schemas import ManifestIngestResult
from .store import RecordStore

logger = logging.getLogger(__name__)

PLATE_HEADERS = {"plate", "plates", "license plate", "plate number"}


def read_sheet_rows(data: bytes, filename: str) -> List[Sequence]:
    """Row-major cell values of the first sheet of an .xlsx or .csv file."""
    if len(data) > MAX_FILE_SIZE:
        raise FileSizeError(f"File size exceeds {MAX_FILE_SIZE // (1024*1024)}MB limit")

    ext = Path(filename or "").suffix.lower()
    if ext not in ALLOWED_MANIFEST_EXTENSIONS:
        raise FileParseFailure("Please select a valid Excel or CSV file")

    if ext == ".csv":
        return _read_csv_rows(data)

    try:
        workbook = load_workbook(filename=io.BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise FileParseFailure(f"Failed to read file: {e}")
    try:
        worksheet = workbook.worksheets[0]
        return [list(row) for row in worksheet.iter_rows(values_only=True)]
    except Exception as e:
        raise FileParseFailure(f"Failed to read file: {e}")
    finally:
        workbook.close()


NUMERIC_CELL = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")


def _csv_value(cell: str):
    # Mirror spreadsheet typing: plain decimal literals are numbers, everything else is text
    if NUMERIC_CELL.fullmatch(cell.strip()):
        return float(cell)
    return cell


def _read_csv_rows(data: bytes) -> List[Sequence]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise FileParseFailure("Failed to read file: CSV must be UTF-8 encoded")
    try:
        return [[_csv_value(cell) for cell in row] for row in csv.reader(io.StringIO(text))]
    except csv.Error as e:
        raise FileParseFailure(f"Failed to read file: {e}")


def _clean(cell) -> Optional[str]:
    if isinstance(cell, str):
        text = cell.strip()
        return text or None
    return None


def _header_column(row: Sequence) -> Optional[int]:
    for idx, cell in enumerate(row):
        text = _clean(cell)
        if text and text.lower() in PLATE_HEADERS:
            return idx
    return None


def extract_plates(rows: Iterable[Sequence]) -> List[str]:
    """
    Plate strings from sheet rows.

    When the first non-empty row names a plate column ("plate", "plate
    number", ...), only that column is read below it. Otherwise every text
    cell is a candidate, row by row. Non-text cells are always ignored.
    """
    rows = [row for row in rows if row and any(cell not in (None, "") for cell in row)]
    if not rows:
        return []

    column = _header_column(rows[0])
    if column is not None:
        cells = (row[column] if column < len(row) else None for row in rows[1:])
    else:
        cells = (cell for row in rows for cell in row)

    return [text for text in map(_clean, cells) if text]


def ingest_manifest(data: bytes, filename: str, store: RecordStore) -> ManifestIngestResult:
    """
    Adds the plates of an uploaded spreadsheet to the warehouse manifest.

    The file is fully parsed before anything is written. Plates already in
    the manifest, or repeated within the file, are skipped. Each new plate
    is inserted on its own; a rejected insert is logged and skipped.
    """
    plates = extract_plates(read_sheet_rows(data, filename))
    existing = store.load_manifest()

    seen = set(existing)
    added = 0
    for plate in plates:
        if plate in seen:
            continue
        seen.add(plate)
        try:
            store.add_manifest_plate(plate)
        except PersistenceFailure as e:
            logger.error(f"Error saving warehouse plate {plate}: {e.message}")
            continue
        added += 1

    total = len(existing) + added
    logger.info(f"Manifest processed: {added} new plates added ({total} total)")
    return ManifestIngestResult(added=added, total=total)
