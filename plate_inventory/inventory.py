# plate_inventory/inventory.py

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from .dependencies import get_store
from .manifest import ingest_manifest
from .schemas import ManifestIngestResult, PlateOut, PlateStats
from .store import MANIFEST_TABLE, PLATES_TABLE, RecordStore

router = APIRouter()


@router.post("/manifest", response_model=ManifestIngestResult, summary="Upload warehouse inventory spreadsheet")
async def upload_manifest(file: UploadFile = File(...), store: RecordStore = Depends(get_store)):
    contents = await file.read()
    return await run_in_threadpool(ingest_manifest, contents, file.filename, store)


@router.get("/manifest", response_model=List[str], summary="Warehouse inventory plates")
def list_manifest(store: RecordStore = Depends(get_store)):
    return [row.plate for row in store.fetch_all(MANIFEST_TABLE)]


@router.delete("/manifest", summary="Clear warehouse inventory and scanned plates")
def clear_all(store: RecordStore = Depends(get_store)):
    return {"plates_deleted": store.clear_plates(), "manifest_deleted": store.clear_manifest()}


@router.get("/plates", response_model=List[PlateOut], summary="All scanned plates")
def list_plates(store: RecordStore = Depends(get_store)):
    return store.fetch_all(PLATES_TABLE)


@router.get("/plates/stats", response_model=PlateStats)
def plate_stats(store: RecordStore = Depends(get_store)):
    return PlateStats(**store.stats())


@router.delete("/plates", summary="Clear scanned plates")
def clear_plates(store: RecordStore = Depends(get_store)):
    return {"plates_deleted": store.clear_plates()}
