# plate_inventory/schemas.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class PlateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    plate: str
    image_url: Optional[str] = None
    created_at: datetime
    status: str
    is_in_warehouse: bool


class PendingPlate(BaseModel):
    """Unmatched plate awaiting an add/skip decision. Never persisted."""
    plate_number: str
    image_url: Optional[str] = None


class ManifestIngestResult(BaseModel):
    added: int
    total: int


class PlateStats(BaseModel):
    total: int
    matched: int
    unmatched: int
    warehouse: int


class SessionOut(BaseModel):
    session_id: str
    manifest_size: int
    created_at: datetime


class CaptureResponse(BaseModel):
    plate: str
    auto_saved: bool
    record: Optional[PlateOut] = None
    pending: Optional[PendingPlate] = None
    warnings: List[str] = []


class EmailRequest(BaseModel):
    to: str


class EmailResponse(BaseModel):
    sent: bool
    total: int
    matched: int
    unmatched: int
