# plate_inventory/capture.py

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from .dependencies import get_recognizer, get_sessions, get_store
from .pipeline import confirm_pending, process_capture, skip_pending
from .recognizer import PlateRecognizerClient
from .schemas import CaptureResponse, PendingPlate, PlateOut, SessionOut
from .session import CaptureSessionRegistry
from .storage import S3Manager, get_blob_store
from .store import RecordStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["capture"])


@router.post("", response_model=SessionOut, status_code=201, summary="Start a capture session")
def start_session(
    store: RecordStore = Depends(get_store),
    sessions: CaptureSessionRegistry = Depends(get_sessions),
):
    session = sessions.start(store)
    return SessionOut(session_id=session.id, manifest_size=len(session.manifest), created_at=session.created_at)


@router.delete("/{session_id}", status_code=204, summary="End a capture session")
def end_session(session_id: str, sessions: CaptureSessionRegistry = Depends(get_sessions)):
    sessions.end(session_id)


@router.post("/{session_id}/capture", response_model=CaptureResponse, summary="Recognize and reconcile a plate image")
async def capture_plate(
    session_id: str,
    file: UploadFile = File(...),
    store: RecordStore = Depends(get_store),
    sessions: CaptureSessionRegistry = Depends(get_sessions),
    recognizer: PlateRecognizerClient = Depends(get_recognizer),
    blob_store: S3Manager = Depends(get_blob_store),
):
    session = sessions.get(session_id)
    contents = await file.read()
    result = await run_in_threadpool(process_capture, contents, file.filename, session, recognizer, blob_store, store)

    saved = result.reconciliation.auto_saved
    return CaptureResponse(
        plate=result.plate,
        auto_saved=saved is not None,
        record=PlateOut.model_validate(saved) if saved is not None else None,
        pending=result.reconciliation.pending,
        warnings=result.warnings,
    )


@router.post("/{session_id}/confirm", response_model=PlateOut, summary="Add the pending plate as unmatched")
def confirm_plate(
    session_id: str,
    store: RecordStore = Depends(get_store),
    sessions: CaptureSessionRegistry = Depends(get_sessions),
):
    record = confirm_pending(sessions.get(session_id), store)
    return PlateOut.model_validate(record)


@router.post("/{session_id}/skip", response_model=PendingPlate, summary="Discard the pending plate")
def skip_plate(session_id: str, sessions: CaptureSessionRegistry = Depends(get_sessions)):
    return skip_pending(sessions.get(session_id))
