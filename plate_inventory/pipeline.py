# plate_inventory/pipeline.py

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .exceptions import PendingPlateConflict, PersistenceFailure, RecognitionFailure, UploadFailure
from .formatter import format_plate
from .imaging import normalize_image, validate_image
from .models import PlateRecord
from .recognizer import Detected, NotDetected, PlateRecognizerClient
from .reconcile import Reconciliation, confirm_unmatched, reconcile
from .schemas import PendingPlate
from .session import CaptureSession
from .storage import S3Manager
from .store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class CaptureResult:
    plate: str
    reconciliation: Reconciliation
    warnings: List[str] = field(default_factory=list)


def process_capture(
    image_bytes: bytes,
    filename: str,
    session: CaptureSession,
    recognizer: PlateRecognizerClient,
    blob_store: S3Manager,
    store: RecordStore,
) -> CaptureResult:
    """
    Runs one captured or uploaded image through the intake pipeline:
    normalize, recognize, format, upload, reconcile.

    A failed upload does not stop the capture; the record is kept with no
    image and the result carries a warning. A recognition failure raises
    before anything is uploaded or saved, leaving the session ready for the
    next capture.
    """
    with session.capturing():
        validate_image(image_bytes, filename)
        normalized = normalize_image(image_bytes)

        result = recognizer.recognize(normalized, filename=f"{Path(filename).stem}.jpg")
        if isinstance(result, NotDetected):
            raise RecognitionFailure("Could not detect a valid plate number, please try again", 422, reason="no-detection")
        if not isinstance(result, Detected):
            raise RecognitionFailure(f"Plate recognition service failed: {result.reason}", 502, reason=result.reason)

        plate = format_plate(result.plate)
        warnings = []

        image_url = None
        try:
            _, image_url = blob_store.upload_image(normalized, f"{Path(filename).stem}.jpg", "image/jpeg")
        except UploadFailure as e:
            logger.warning(f"Image upload failed for plate {plate}: {e.message}")
            warnings.append(f"Image upload failed: {e.message}")

        reconciliation = reconcile(plate, session.manifest, image_url, store)
        if reconciliation.pending is not None:
            session.pending = reconciliation.pending

    return CaptureResult(plate=plate, reconciliation=reconciliation, warnings=warnings)


def _take_pending(session: CaptureSession) -> PendingPlate:
    with session.lock:
        if session.processing:
            raise PendingPlateConflict("A capture is still being processed for this session")
        if session.pending is None:
            raise PendingPlateConflict("No plate is waiting for confirmation")
        pending, session.pending = session.pending, None
    return pending


def confirm_pending(session: CaptureSession, store: RecordStore) -> PlateRecord:
    """Saves the pending plate as unmatched. The plate stays pending if the insert fails."""
    pending = _take_pending(session)
    try:
        return confirm_unmatched(pending, store)
    except PersistenceFailure:
        with session.lock:
            session.pending = pending
        raise


def skip_pending(session: CaptureSession) -> PendingPlate:
    """Drops the pending plate without saving anything."""
    pending = _take_pending(session)
    logger.info(f"Plate {pending.plate_number} skipped")
    return pending
