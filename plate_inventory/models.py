# plate_inventory/models.py

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from datetime import datetime
from .database import Base

MATCHED = "matched"
UNMATCHED = "unmatched"


class PlateRecord(Base):
    """One scanned plate. Immutable after insert; only bulk deletion removes rows."""
    __tablename__ = "plates"
    id = Column(Integer, primary_key=True, index=True)
    plate = Column(String, index=True, nullable=False)
    image_url = Column("plate_url", String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    status = Column(String(16), nullable=False)
    is_in_warehouse = Column("isInWarehouse", Boolean, nullable=False)


class ManifestPlate(Base):
    __tablename__ = "excel_plates"
    id = Column(Integer, primary_key=True, index=True)
    plate = Column(String, index=True, nullable=False)
