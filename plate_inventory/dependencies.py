# plate_inventory/dependencies.py

from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .recognizer import PlateRecognizerClient
from .report import ReportBuilder
from .session import CaptureSessionRegistry, capture_sessions
from .store import RecordStore

_recognizer = None


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_recognizer() -> PlateRecognizerClient:
    global _recognizer
    if _recognizer is None:
        _recognizer = PlateRecognizerClient()
    return _recognizer


def get_report_builder() -> ReportBuilder:
    return ReportBuilder()


def get_sessions() -> CaptureSessionRegistry:
    return capture_sessions
